# Models package — import all models here so Alembic can discover them.

from authorpage.models.telemetry import TelemetryEvent  # noqa: F401
