"""Example: drive the engine through the service layer (no Flask).

Submits one day for the demo gym from database/seed.sql and prints the
resulting sheet.
"""

import importlib
import json

from config import get_settings_module

from src.gym_attendance.gym_attendance.container import build_container

DEMO_GYM = "7d2f0c1e-0000-4000-8000-000000000001"
DEMO_COACH = "a1000000-0000-4000-8000-000000000001"


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    result = container.orchestrator.submit_batch(
        DEMO_GYM,
        "2026-02-02",
        [
            {"athleteId": "a1000000-0000-4000-8000-000000000002", "status": "present"},
            {"athleteId": "a1000000-0000-4000-8000-000000000003", "status": "excused"},
            {"athleteId": "a1000000-0000-4000-8000-000000000004", "status": "present"},
        ],
        DEMO_COACH,
    )
    print(json.dumps(result.to_dict(), indent=2))
    print(json.dumps(container.projector.project_day(DEMO_GYM, "2026-02-02").to_dict(), indent=2))


if __name__ == "__main__":
    main()
