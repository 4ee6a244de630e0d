"""
Tests for ConfigManager and dotenv loading, dood!
"""

import os
from pathlib import Path

import pytest

from internal.config.manager import ConfigManager, substituteEnvVars
from lib.utils import loadDotEnv


@pytest.fixture
def configDir(tmp_path) -> Path:
    return tmp_path


def writeToml(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestSubstituteEnvVars:
    """Test ${VAR} substitution, dood!"""

    def testNestedStructures(self, monkeypatch):
        """Test substitution in dicts and lists"""
        monkeypatch.setenv("FSSTORAGE_TEST_ROOT", "/srv/storage")
        value = {"storage": {"root": "${FSSTORAGE_TEST_ROOT}/objects", "list": ["${FSSTORAGE_TEST_ROOT}", 1]}}

        result = substituteEnvVars(value)

        assert result == {"storage": {"root": "/srv/storage/objects", "list": ["/srv/storage", 1]}}

    def testUnknownVariableKept(self):
        """Test that unset variables are left as placeholders"""
        assert substituteEnvVars("${FSSTORAGE_SURELY_UNSET}") == "${FSSTORAGE_SURELY_UNSET}"


class TestConfigManager:
    """Test configuration loading, dood!"""

    def testLoadMainConfig(self, configDir):
        """Test loading storage and logging sections"""
        configPath = writeToml(
            configDir / "config.toml",
            '[storage]\nroot = "/srv/storage"\n\n[logging]\nlevel = "DEBUG"\n',
        )

        manager = ConfigManager(configPath=str(configPath), dotEnvFile=str(configDir / ".env"))

        assert manager.getStorageConfig() == {"root": "/srv/storage"}
        assert manager.getLoggingConfig() == {"level": "DEBUG"}

    def testConfigDirsMergedInOrder(self, configDir):
        """Test that config directories are merged over main config"""
        configPath = writeToml(configDir / "config.toml", '[storage]\nroot = "/main"\nchunk-size = 1\n')
        writeToml(configDir / "conf.d" / "10-root.toml", '[storage]\nroot = "/override"\n')
        writeToml(configDir / "conf.d" / "nested" / "20-chunk.toml", "[storage]\nchunk-size = 2\n")

        manager = ConfigManager(
            configPath=str(configPath),
            configDirs=[str(configDir / "conf.d")],
            dotEnvFile=str(configDir / ".env"),
        )

        assert manager.getStorageConfig() == {"root": "/override", "chunk-size": 2}

    def testEnvFromDotEnv(self, configDir, monkeypatch):
        """Test that .env variables are substituted"""
        monkeypatch.delenv("FSSTORAGE_DOTENV_ROOT", raising=False)
        dotEnv = configDir / ".env"
        dotEnv.write_text('# comment\nFSSTORAGE_DOTENV_ROOT="/from/dotenv"\n')
        configPath = writeToml(configDir / "config.toml", '[storage]\nroot = "${FSSTORAGE_DOTENV_ROOT}"\n')

        try:
            manager = ConfigManager(configPath=str(configPath), dotEnvFile=str(dotEnv))
            assert manager.getStorageConfig()["root"] == "/from/dotenv"
        finally:
            os.environ.pop("FSSTORAGE_DOTENV_ROOT", None)

    def testMissingConfigExits(self, configDir):
        """Test that missing config file exits"""
        with pytest.raises(SystemExit):
            ConfigManager(configPath=str(configDir / "missing.toml"), dotEnvFile=str(configDir / ".env"))

    def testMissingStorageRootExits(self, configDir):
        """Test that config without storage root exits"""
        configPath = writeToml(configDir / "config.toml", '[logging]\nlevel = "INFO"\n')
        with pytest.raises(SystemExit):
            ConfigManager(configPath=str(configPath), dotEnvFile=str(configDir / ".env"))

    def testBrokenTomlExits(self, configDir):
        """Test that unparsable config exits"""
        configPath = writeToml(configDir / "config.toml", "[storage\nroot = ")
        with pytest.raises(SystemExit):
            ConfigManager(configPath=str(configPath), dotEnvFile=str(configDir / ".env"))


class TestLoadDotEnv:
    """Test .env loading, dood!"""

    def testMissingFile(self, tmp_path):
        """Test that missing .env gives empty dict"""
        assert loadDotEnv(str(tmp_path / ".env"), populateEnv=False) == {}

    def testParsing(self, tmp_path):
        """Test comments, quotes and values with '='"""
        dotEnv = tmp_path / ".env"
        dotEnv.write_text('# comment\n\nKEY1=value1\nKEY2 = "quoted"\nKEY3=a=b\n')

        assert loadDotEnv(str(dotEnv), populateEnv=False) == {"KEY1": "value1", "KEY2": "quoted", "KEY3": "a=b"}

    def testExistingEnvironmentWins(self, tmp_path, monkeypatch):
        """Test that variables already set are not overwritten"""
        monkeypatch.setenv("FSSTORAGE_KEEP", "original")
        dotEnv = tmp_path / ".env"
        dotEnv.write_text("FSSTORAGE_KEEP=fromfile\n")

        loadDotEnv(str(dotEnv))

        assert os.environ["FSSTORAGE_KEEP"] == "original"
