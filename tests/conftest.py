"""Configuration for pytest."""
import sys
import os

# Add the project root to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Common test fixtures can be defined here
import pytest
from unittest.mock import Mock

from app.models.schemas import ReadingPlan
from app.services.key_value_store import InMemoryKeyValueStore
from app.services.plan_generator import generate
from app.services.progress_tracker import ProgressTracker, TrackerState, default_stats


@pytest.fixture
def mock_settings():
    """Mock application settings for testing."""
    settings = Mock()
    settings.app_name = "Devocional Teste"
    settings.debug = True
    settings.cache_prefix = "bible_cache_v1_"
    settings.stats_key = "devocional_stats_v1"
    settings.plans_key = "devocional_plans_v1"
    settings.default_user_name = "Irmão(ã)"
    settings.openai_api_key = "test-openai-key"
    settings.openai_model = "gpt-4o-mini"
    settings.openai_max_output_tokens = 4000
    settings.openai_request_timeout = 0
    settings.prefetch_delay_seconds = 0
    settings.allowed_origins = ["http://localhost:3000"]
    return settings


@pytest.fixture
def memory_store():
    return InMemoryKeyValueStore()


def make_plan(plan_id="prov", start="Provérbios", end="Provérbios", days=31, name="Provérbios"):
    """Small generated plan for tracker tests."""
    return ReadingPlan(
        id=plan_id,
        name=name,
        description="",
        duration_days=days,
        progress=0,
        tasks=generate(plan_id, start, end, days),
    )


@pytest.fixture
def small_state():
    return TrackerState(
        plans=(
            make_plan(),
            make_plan("jonas", "Jonas", "Jonas", 2, name="Jonas"),
        ),
        stats=default_stats(),
    )


@pytest.fixture
def tracker(small_state):
    return ProgressTracker(small_state)
