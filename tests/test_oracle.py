from types import SimpleNamespace

import pytest

from cyberswarm.core import oracle as oracle_mod
from cyberswarm.core.config import Config
from cyberswarm.core.errors import OracleError, OracleParseError
from cyberswarm.core.oracle import (
    LiteLLMOracle,
    decide,
    extract_json,
    parse_decision,
    strip_code_fence,
)

from .fakes import FakeOracle


@pytest.mark.parametrize(
    "text",
    [
        '{"a": 1}',
        '```json\n{"a": 1}\n```',
        '```JSON\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        '  \n```json\n{"a": 1}\n```  \n',
    ],
)
def test_extract_json_accepts_fenced_and_bare(text):
    assert extract_json(text) == {"a": 1}


def test_strip_code_fence_leaves_plain_text():
    assert strip_code_fence("  plain  ") == "plain"


def test_extract_json_keeps_inner_backticks():
    text = '```json\n{"cmd": "echo `id`"}\n```'
    assert extract_json(text) == {"cmd": "echo `id`"}


def test_extract_json_error_carries_raw_text():
    with pytest.raises(OracleParseError) as exc_info:
        extract_json("I think you should scan everything." + "x" * 1000)
    assert exc_info.value.raw_text.startswith("I think")
    assert len(exc_info.value.raw_text) == 500


def test_parse_decision_requires_object():
    with pytest.raises(OracleParseError):
        parse_decision("[1, 2, 3]")


async def test_decide_uses_oracle():
    fake = FakeOracle(responses=['```json\n{"strategy": "arp_scan"}\n```'])
    assert await decide(fake, "pick a strategy") == {"strategy": "arp_scan"}
    assert fake.prompts == ["pick a strategy"]


def test_fake_oracle_satisfies_protocol():
    assert isinstance(FakeOracle(), oracle_mod.DecisionOracle)


def _response(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


async def test_litellm_oracle_submit(monkeypatch):
    calls = []

    async def fake_acompletion(**kwargs):
        calls.append(kwargs)
        return _response('{"ok": true}')

    monkeypatch.setattr(oracle_mod, "acompletion", fake_acompletion)
    orc = LiteLLMOracle(Config(llm_model="gemini/test", api_key="k"))
    assert await orc.submit("hello") == '{"ok": true}'
    assert calls[0]["model"] == "gemini/test"
    assert calls[0]["api_key"] == "k"
    assert calls[0]["messages"] == [{"role": "user", "content": "hello"}]


async def test_litellm_oracle_retries_transient_errors(monkeypatch):
    attempts = []
    sleeps = []

    async def flaky(**kwargs):
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("503 Service Unavailable")
        return _response("done")

    async def no_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(oracle_mod, "acompletion", flaky)
    monkeypatch.setattr(oracle_mod.asyncio, "sleep", no_sleep)
    orc = LiteLLMOracle(Config(llm_max_retries=3))
    assert await orc.submit("x") == "done"
    assert len(attempts) == 3
    assert sleeps == [2, 4]


async def test_litellm_oracle_wraps_permanent_errors(monkeypatch):
    async def broken(**kwargs):
        raise RuntimeError("invalid api key")

    monkeypatch.setattr(oracle_mod, "acompletion", broken)
    orc = LiteLLMOracle(Config())
    with pytest.raises(OracleError, match="Decision oracle error"):
        await orc.submit("x")


async def test_submit_with_files_inlines_content(monkeypatch, tmp_path):
    seen = []

    async def capture(**kwargs):
        seen.append(kwargs["messages"][0]["content"])
        return _response("{}")

    monkeypatch.setattr(oracle_mod, "acompletion", capture)
    ctx = tmp_path / "nmap.xml"
    ctx.write_text("<nmaprun/>")
    await LiteLLMOracle(Config()).submit_with_files("analyse", [str(ctx)])
    assert "analyse" in seen[0]
    assert "nmap.xml" in seen[0]
    assert "<nmaprun/>" in seen[0]


async def test_submit_with_missing_file_raises(tmp_path):
    with pytest.raises(OracleError):
        await LiteLLMOracle(Config()).submit_with_files("x", [str(tmp_path / "missing.txt")])
