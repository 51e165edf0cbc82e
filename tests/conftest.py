"""
Shared fixtures: every test gets its own SQLite file and config under tmp_path.
"""

import pytest

from chili_cookoff.bonus import BonusRound
from chili_cookoff.competition import CompetitionState
from chili_cookoff.config import CookoffConfig
from chili_cookoff.cookoff import CookoffSystem
from chili_cookoff.database import DatabaseManager
from chili_cookoff.judging import JudgingService
from chili_cookoff.registry import ChiliRegistry
from chili_cookoff.voting import VotingService

CONFIG_ENV_VARS = (
    "DOCKER",
    "NODE_ENV",
    "COMPETITION_NAME",
    "ENVIRONMENT",
    "APP_URL",
    "BUSY_TIMEOUT_MS",
    "CORS_ENABLED",
    "CORS_ALLOWED_ORIGIN",
    "REQUEST_LOGGING",
    "DEBUG_ENDPOINTS",
    "REQUIRE_ACTIVE_BONUS_ROUND",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "cookoff_config.json")


@pytest.fixture
def config(config_path):
    return CookoffConfig(config_path)


@pytest.fixture
async def db_manager(tmp_path, config):
    manager = DatabaseManager(str(tmp_path / "cookoff.db"), config)
    await manager.init_db()
    return manager


@pytest.fixture
def registry(db_manager):
    return ChiliRegistry(db_manager)


@pytest.fixture
def judging(db_manager):
    return JudgingService(db_manager)


@pytest.fixture
def voting(db_manager):
    return VotingService(db_manager)


@pytest.fixture
def bonus(db_manager, config):
    return BonusRound(db_manager, config)


@pytest.fixture
def competition(db_manager):
    return CompetitionState(db_manager)


@pytest.fixture
async def system(tmp_path, config_path):
    cookoff = CookoffSystem(
        db_path=str(tmp_path / "cookoff.db"),
        config_path=config_path,
    )
    await cookoff.init_db()
    return cookoff


@pytest.fixture
async def client(aiohttp_client, system):
    return await aiohttp_client(system.create_app())


@pytest.fixture
def add_chilis(registry):
    async def _add(*numbers):
        for number in numbers:
            await registry.upsert_chili(number, f"Chili {number}", f"Cook {number}")

    return _add
