"""Tests for polyclob.config — config.json > env > defaults, credential files."""

import json
import os
import stat

import pytest

from polyclob.config import Config
from polyclob.constants import CLOB_BASE_URL
from polyclob.types import Credentials


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("POLY_PRIVATE_KEY", "POLY_CREDS_FILE", "POLY_CLOB_URL",
                "POLY_GAMMA_URL", "POLY_CHAIN_ID", "POLY_REQUEST_TIMEOUT", "POLY_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


class TestLoad:
    def test_defaults(self, tmp_path):
        cfg = Config.load(str(tmp_path))
        assert cfg.private_key == ""
        assert cfg.clob_url == CLOB_BASE_URL
        assert cfg.chain_id == 137
        assert cfg.log_level == "INFO"

    def test_env_overrides_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POLY_CHAIN_ID", "80002")
        monkeypatch.setenv("POLY_PRIVATE_KEY", "0xabc")
        cfg = Config.load(str(tmp_path))
        assert cfg.chain_id == 80002
        assert cfg.private_key == "0xabc"

    def test_request_timeout_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POLY_REQUEST_TIMEOUT", "2.5")
        cfg = Config.load(str(tmp_path))
        assert cfg.request_timeout == 2.5
        assert isinstance(cfg.request_timeout, float)

    def test_file_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POLY_CLOB_URL", "https://env.example")
        (tmp_path / "config.json").write_text(json.dumps({
            "clob_url": "https://file.example",
            "request_timeout": "5",
        }))
        cfg = Config.load(str(tmp_path))
        assert cfg.clob_url == "https://file.example"
        assert cfg.request_timeout == 5.0

    def test_corrupt_file_falls_back(self, tmp_path):
        (tmp_path / "config.json").write_text("{not json")
        cfg = Config.load(str(tmp_path))
        assert cfg.clob_url == CLOB_BASE_URL


class TestSave:
    def test_private_key_never_written(self, tmp_path):
        cfg = Config(private_key="0xsecret", log_level="DEBUG")
        cfg.save(str(tmp_path))
        data = json.loads((tmp_path / "config.json").read_text())
        assert "private_key" not in data
        assert data["log_level"] == "DEBUG"

    def test_round_trip(self, tmp_path):
        Config(chain_id=80002).save(str(tmp_path))
        assert Config.load(str(tmp_path)).chain_id == 80002


class TestCredentials:
    def test_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert Config().load_credentials(str(tmp_path)) is None

    def test_save_and_load(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        creds = Credentials(api_key="k", secret="c2VjcmV0", passphrase="p")
        cfg = Config()

        path = cfg.save_credentials(creds)
        assert path == "creds.json"
        assert cfg.load_credentials(str(tmp_path)) == creds

    def test_file_is_owner_only(self, tmp_path):
        path = str(tmp_path / "my-creds.json")
        Config().save_credentials(Credentials("k", "s", "p"), path)
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_loads_from_config_dir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        sub = tmp_path / "conf"
        sub.mkdir()
        (sub / "creds.json").write_text(json.dumps(
            {"apiKey": "k", "secret": "s", "passphrase": "p"}
        ))
        assert Config().load_credentials(str(sub)).api_key == "k"
