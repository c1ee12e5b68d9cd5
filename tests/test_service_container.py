import pytest

from pattern_analytics.config import Settings
from pattern_analytics.di.container import ServiceContainer
from pattern_analytics.exceptions import ConfigurationError
from tests.fixtures import recent_visits


def _settings(**overrides):
    settings = Settings()
    settings.SCHEDULER_ENABLED = False
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


@pytest.mark.parametrize(
    "overrides",
    [
        {"ANALYSIS_INTERVAL_HOURS": 0},
        {"ANALYSIS_ERROR_BACKOFF_MINUTES": -1},
        {"ANALYSIS_WARMUP_MINUTES": -5},
    ],
)
def test_invalid_scheduler_timings_are_rejected(overrides):
    with pytest.raises(ConfigurationError):
        _settings(**overrides).validate()


def test_timings_convert_to_seconds():
    settings = _settings(
        ANALYSIS_INTERVAL_HOURS=6, ANALYSIS_WARMUP_MINUTES=2, ANALYSIS_ERROR_BACKOFF_MINUTES=60
    )

    assert settings.interval_seconds == 21600
    assert settings.warmup_seconds == 120
    assert settings.error_backoff_seconds == 3600


@pytest.mark.anyio
async def test_startup_wires_services_around_injected_reader(factory, make_reader, clock):
    reader = make_reader([factory.create(patient_id="p-1", visit_dates=recent_visits(3))])
    container = ServiceContainer(settings=_settings(), reader=reader, clock=clock)

    await container.startup()
    try:
        assert container.pattern_analyzer.risk_scoring_service is container.risk_scoring_service
        assert container.scheduler.analyzer is container.pattern_analyzer
        assert not container.scheduler.is_running

        analytics = await container.patient_analytics_service.get_patient_analytics("p-1")
        assert analytics.medical_history.recent_visits == 3
    finally:
        await container.shutdown()


@pytest.mark.anyio
async def test_enabled_scheduler_starts_and_stops(make_reader, clock):
    settings = _settings(SCHEDULER_ENABLED=True, ANALYSIS_WARMUP_MINUTES=60)
    container = ServiceContainer(settings=settings, reader=make_reader([]), clock=clock)

    await container.startup()
    assert container.scheduler.is_running

    await container.shutdown()
    assert not container.scheduler.is_running


@pytest.mark.anyio
async def test_invalid_settings_fail_startup(make_reader):
    container = ServiceContainer(
        settings=_settings(ANALYSIS_INTERVAL_HOURS=-1), reader=make_reader([])
    )

    with pytest.raises(ConfigurationError):
        await container.startup()
