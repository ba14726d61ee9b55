from types import SimpleNamespace

import typer
from typer.testing import CliRunner

from scripts import list_models
from scripts.list_models import list_generate_models


def make_model(name, actions, display_name="", input_token_limit=None):
    return SimpleNamespace(
        name=name,
        supported_actions=actions,
        display_name=display_name,
        input_token_limit=input_token_limit,
    )


class FakeGenaiClient:
    def __init__(self, api_key=None):
        self.api_key = api_key
        self.models = SimpleNamespace(list=lambda: iter([
            make_model("models/gemini-2.5-flash", ["generateContent", "countTokens"],
                       "Gemini 2.5 Flash", 1048576),
            make_model("models/text-embedding-004", ["embedContent"]),
            make_model("models/aqa", None),
        ]))


def test_only_generate_content_models_are_listed():
    models = list_generate_models(FakeGenaiClient())

    assert [m["name"] for m in models] == ["gemini-2.5-flash"]
    assert models[0]["display_name"] == "Gemini 2.5 Flash"
    assert models[0]["input_token_limit"] == 1048576


def test_cli_prints_models_table(monkeypatch):
    monkeypatch.setattr(list_models.genai, "Client", FakeGenaiClient)
    app = typer.Typer()
    app.command()(list_models.cli_main)

    result = CliRunner().invoke(app, ["--api-key", "gm-key"])

    assert result.exit_code == 0
    assert "gemini-2.5-flash" in result.output
    assert "text-embedding-004" not in result.output


def test_cli_without_key_exits(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    app = typer.Typer()
    app.command()(list_models.cli_main)

    result = CliRunner().invoke(app, [])

    assert result.exit_code == 1
