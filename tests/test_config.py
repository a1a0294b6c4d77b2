from pathlib import Path

import pytest

from courseplayer.config import get_settings
from courseplayer.rewards import RewardPolicy


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("DB_PATH", "COURSE_PATH", "REWARD_POLICY", "LOG_LEVEL"):
        monkeypatch.delenv(f"COURSEPLAYER_{name}", raising=False)


def test_defaults() -> None:
    settings = get_settings()
    assert settings.db_path == Path(".courseplayer") / "progress.db"
    assert settings.course_path is None
    assert settings.reward_policy is RewardPolicy.FIRST_ATTEMPT_ONLY
    assert settings.log_level == "WARNING"


def test_environment_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("COURSEPLAYER_DB_PATH", str(tmp_path / "p.db"))
    monkeypatch.setenv("COURSEPLAYER_REWARD_POLICY", "best-attempt")
    settings = get_settings()
    assert settings.db_path == tmp_path / "p.db"
    assert settings.reward_policy is RewardPolicy.BEST_ATTEMPT


def test_env_file_is_read(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("COURSEPLAYER_LOG_LEVEL=DEBUG\n", encoding="utf-8")
    assert get_settings().log_level == "DEBUG"


def test_unknown_policy_rejected(monkeypatch) -> None:
    monkeypatch.setenv("COURSEPLAYER_REWARD_POLICY", "always")
    with pytest.raises(ValueError):
        get_settings()
