from __future__ import annotations

import base64
import json
from unittest.mock import patch

import pytest

import main
from rolelink.auth.util import generate_secret_key
from rolelink.config import load_link_config
from rolelink.responses import error_page, render_page, success_page


def test_config_reads_environment(link_env) -> None:
    assert link_env.open_collective_slug == "example-collective"
    assert link_env.discord_client_id == "1234567890"
    assert link_env.discord_bot_token is None
    assert link_env.state_ttl_seconds == 900
    assert link_env.cookie_max_age_seconds == 90000
    assert link_env.cookie_secure is True
    assert link_env.notifications_enabled is False


def test_config_overrides(link_env, monkeypatch) -> None:
    monkeypatch.setenv("LINK_STATE_TTL_SECONDS", "5")
    monkeypatch.setenv("LINK_COOKIE_SECURE", "false")
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", " https://discord.com/api/webhooks/1/abc ")
    load_link_config.cache_clear()
    cfg = load_link_config()
    assert cfg.state_ttl_seconds == 60
    assert cfg.cookie_secure is False
    assert cfg.discord_webhook_url == "https://discord.com/api/webhooks/1/abc"
    assert cfg.notifications_enabled is True


def test_generate_secret_key_decodes_to_32_bytes() -> None:
    key = generate_secret_key()
    assert len(base64.b64decode(key, validate=True)) == 32
    assert key != generate_secret_key()


def test_pages_escape_and_mark_status() -> None:
    html = render_page('<b>"x"</b>', success=False)
    assert "&lt;b&gt;" in html
    assert 'data-status="error"' in html

    ok = success_page()
    assert ok.status_code == 200
    assert ok.headers["cache-control"] == "no-store"
    assert b'data-status="success"' in ok.body
    assert b"close this tab" in ok.body
    assert error_page("nope").status_code == 200


def test_load_locales(tmp_path) -> None:
    assert main.load_locales(None) is None

    path = tmp_path / "locales.json"
    path.write_text(json.dumps({"fr": {"is_backer": {"name": "Donateur"}}}), encoding="utf-8")
    assert main.load_locales(str(path)) == {"fr": {"is_backer": {"name": "Donateur"}}}

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="expected a JSON object"):
        main.load_locales(str(path))


def test_register_metadata_requires_bot_token(link_env) -> None:
    with pytest.raises(ValueError, match="DISCORD_BOT_TOKEN"):
        main.register_metadata()


def test_register_metadata_prints_result(link_env, monkeypatch, capsys) -> None:
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "bot-token")
    load_link_config.cache_clear()
    with patch("rolelink.providers.discord.DiscordClient.register_metadata_schema") as mock_register:
        mock_register.return_value = [{"key": "is_backer", "type": 7}]
        main.register_metadata()

    mock_register.assert_called_once_with("bot-token", None)
    assert json.loads(capsys.readouterr().out) == [{"key": "is_backer", "type": 7}]
