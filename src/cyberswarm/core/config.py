"""
core.config — Centralised configuration management.

Loads settings from environment variables, .env files and an optional
JSON / YAML config file.  Every other module accesses configuration
through ``Config``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

_env_loaded = False


def _load_dotenv() -> None:
    """Load .env from the project root and other standard paths.

    Search order:
        1. ``<project-root>/.env``  (two levels above ``cyberswarm/``)
        2. ``$CWD/.env``
        3. ``~/.env``

    All matching files are loaded; values already present in the
    environment are never overridden.
    """
    global _env_loaded
    if _env_loaded:
        return

    _pkg_root = Path(__file__).resolve().parent.parent          # src/cyberswarm
    _project_root = _pkg_root.parent.parent                     # repo root

    search = [
        _project_root / ".env",
        Path.cwd() / ".env",
        Path.home() / ".env",
    ]
    for p in search:
        if p.exists():
            load_dotenv(p, override=False)
    _env_loaded = True


class Config(BaseModel):
    """
    Global runtime configuration.

    Attributes are populated from environment variables / .env and an
    optional config file.  Create via ``load_config()``.
    """

    # ── Decision oracle (LLM) ────────────────────────────────────────
    llm_model: str = Field(
        default="gemini/gemini-1.5-pro",
        description="LiteLLM model identifier used by the decision oracle",
    )
    llm_temperature: float = 0.7
    llm_max_tokens: int = 8192
    llm_max_retries: int = Field(
        default=3,
        description="Retries for transient transport errors (not for task failures)",
    )
    api_key: Optional[str] = None  # resolved at load time

    # ── Simulation ───────────────────────────────────────────────────
    target_network: str = "192.168.1.0/24"
    simulation_timeout: float = Field(default=300.0, description="Seconds; 0 disables the timeout")
    max_concurrent_agents: int = 5

    # ── Agent pacing ─────────────────────────────────────────────────
    delay_scale: float = Field(
        default=1.0,
        description="Multiplier for simulated processing delays; 0 disables them",
    )

    # ── Scheduling ───────────────────────────────────────────────────
    assignment_policy: str = Field(
        default="reverse_scan",
        description="'reverse_scan' (historical ordering) or 'priority_first'",
    )

    # ── Logging ──────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: Path = Path("./output/logs")

    # ── Output ───────────────────────────────────────────────────────
    output_format: str = "json"
    report_format: str = "markdown"
    output_dir: Path = Path("./output")
    scenarios_dir: Path = Field(default_factory=lambda: Path.cwd() / "config" / "scenarios")

    # ── Debug ────────────────────────────────────────────────────────
    debug: bool = False


def _resolve_api_key() -> Optional[str]:
    """Return the first available LLM API key from env."""
    for var in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "OPENAI_API_KEY"):
        val = os.environ.get(var)
        if val:
            return val
    return None


def _env_bool(name: str) -> Optional[bool]:
    val = os.environ.get(name)
    if val is None:
        return None
    return val.lower() in ("1", "true", "yes")


def _read_config_file(path: Path) -> Dict[str, Any]:
    """Parse a ``.json`` / ``.yaml`` / ``.yml`` config file into a flat dict."""
    text = path.read_text()
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    elif path.suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported config file format: {path.suffix} (use .yaml, .yml or .json)")
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return _flatten_sections(data)


# Nested sections accepted in config files, mapped onto flat Config fields.
_SECTION_KEYS: Dict[str, Dict[str, str]] = {
    "gemini": {
        "apiKey": "api_key",
        "api_key": "api_key",
        "model": "llm_model",
        "temperature": "llm_temperature",
        "maxOutputTokens": "llm_max_tokens",
        "max_output_tokens": "llm_max_tokens",
    },
    "simulation": {
        "targetNetwork": "target_network",
        "target_network": "target_network",
        "timeout": "simulation_timeout",
        "maxConcurrentAgents": "max_concurrent_agents",
        "max_concurrent_agents": "max_concurrent_agents",
        "delayScale": "delay_scale",
        "delay_scale": "delay_scale",
        "assignmentPolicy": "assignment_policy",
        "assignment_policy": "assignment_policy",
    },
    "logging": {
        "level": "log_level",
        "toFile": "log_to_file",
        "to_file": "log_to_file",
        "dir": "log_dir",
    },
    "output": {
        "format": "output_format",
        "reportFormat": "report_format",
        "report_format": "report_format",
        "dir": "output_dir",
    },
}


def _flatten_sections(data: Dict[str, Any]) -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        mapping = _SECTION_KEYS.get(key)
        if mapping is not None and isinstance(value, dict):
            for sub_key, sub_value in value.items():
                field = mapping.get(sub_key)
                if field is not None:
                    flat[field] = sub_value
        elif key in Config.model_fields:
            flat[key] = value
    return flat


def load_config(config_path: Optional[Union[str, Path]] = None, **overrides: object) -> Config:
    """
    Load ``Config`` from environment, an optional file and overrides.

    Precedence (lowest to highest): built-in defaults, environment,
    config file, explicit ``overrides``.
    """
    _load_dotenv()
    values: Dict[str, Any] = {"api_key": _resolve_api_key()}

    env_map = {
        "CYBERSWARM_LLM_MODEL": "llm_model",
        "DEFAULT_TARGET_NETWORK": "target_network",
        "SIMULATION_TIMEOUT": "simulation_timeout",
        "MAX_CONCURRENT_AGENTS": "max_concurrent_agents",
        "CYBERSWARM_DELAY_SCALE": "delay_scale",
        "CYBERSWARM_ASSIGNMENT_POLICY": "assignment_policy",
        "LOG_LEVEL": "log_level",
        "LOG_DIR": "log_dir",
        "OUTPUT_FORMAT": "output_format",
        "REPORT_FORMAT": "report_format",
    }
    for env_name, field in env_map.items():
        val = os.environ.get(env_name)
        if val:
            values[field] = val

    for env_name, field in (("LOG_TO_FILE", "log_to_file"), ("CYBERSWARM_DEBUG", "debug")):
        flag = _env_bool(env_name)
        if flag is not None:
            values[field] = flag

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        values.update(_read_config_file(path))

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Config(**values)  # type: ignore[arg-type]


def validate_config(cfg: Config) -> List[str]:
    """Return a list of human-readable problems (empty when valid)."""
    problems: List[str] = []
    if not cfg.api_key:
        problems.append("GEMINI_API_KEY is required. Set it in .env or the config file.")
    if cfg.assignment_policy not in ("reverse_scan", "priority_first"):
        problems.append(f"Unknown assignment_policy: {cfg.assignment_policy}")
    if not 0.0 <= cfg.llm_temperature <= 2.0:
        problems.append(f"llm_temperature out of range: {cfg.llm_temperature}")
    if cfg.delay_scale < 0:
        problems.append("delay_scale must not be negative")
    if cfg.simulation_timeout < 0:
        problems.append("simulation_timeout must not be negative")
    return problems


def save_config(cfg: Config, output_path: Union[str, Path]) -> Path:
    """Write ``cfg`` as JSON or YAML depending on the file extension."""
    path = Path(output_path)
    data = cfg.model_dump(mode="json", exclude={"api_key"})
    if path.suffix in (".yaml", ".yml"):
        content = yaml.safe_dump(data, sort_keys=False)
    elif path.suffix == ".json":
        content = json.dumps(data, indent=2)
    else:
        raise ValueError("Unsupported config file format. Use .yaml, .yml, or .json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


# ── Scenarios ─────────────────────────────────────────────────────────


def load_scenario(name: str, scenarios_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load ``<scenarios_dir>/<name>.yaml``."""
    base = Path(scenarios_dir) if scenarios_dir else Path.cwd() / "config" / "scenarios"
    for suffix in (".yaml", ".yml"):
        path = base / f"{name}{suffix}"
        if path.exists():
            return yaml.safe_load(path.read_text()) or {}
    raise FileNotFoundError(f"Scenario not found: {name}")


def list_scenarios(scenarios_dir: Optional[Path] = None) -> List[str]:
    base = Path(scenarios_dir) if scenarios_dir else Path.cwd() / "config" / "scenarios"
    if not base.is_dir():
        return []
    return sorted(p.stem for p in base.iterdir() if p.suffix in (".yaml", ".yml"))
