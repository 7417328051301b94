from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import Requester, require_roles, requester_required
from ..common.datetime_utils import parse_iso_date
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def gym_staff(gym_id: str, *roles: Role) -> Requester:
        """Calling-layer check: staff role and membership of this gym."""
        requester = require_roles(*(roles or (Role.ADMIN, Role.COACH)))
        if not container.gyms_repo.get_by_id(gym_id):
            raise NotFoundError("Gym not found")
        if not container.gyms_repo.is_member(gym_id, requester.user_id):
            raise AuthorizationError("You do not have permission for this gym")
        return requester

    def json_body() -> dict:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("A JSON object body is required")
        return body

    @app.route("/api/attendance/<gym_id>/<day>", methods=["GET"], endpoint="attendance_day")
    @requester_required
    def attendance_day(gym_id: str, day: str):
        gym_staff(gym_id)
        view = container.projector.project_day(gym_id, day)
        return jsonify(view.to_dict())

    @app.route("/api/attendance/<gym_id>/<day>", methods=["POST"], endpoint="attendance_submit")
    @requester_required
    def attendance_submit(gym_id: str, day: str):
        requester = gym_staff(gym_id)
        body = json_body()

        body_day = body.get("day")
        if body_day is not None and parse_iso_date(body_day) != parse_iso_date(day):
            raise ValidationError("Body day does not match the URL day")
        if "entries" not in body:
            raise ValidationError("entries is required")

        result = container.orchestrator.submit_batch(gym_id, day, body["entries"], requester.user_id)
        return jsonify(result.to_dict())

    @app.route("/api/attendance/<gym_id>/<day>/<athlete_id>", methods=["PATCH"], endpoint="attendance_update_one")
    @requester_required
    def attendance_update_one(gym_id: str, day: str, athlete_id: str):
        requester = gym_staff(gym_id)
        body = json_body()
        result = container.orchestrator.submit_single(gym_id, day, athlete_id, body.get("status"), requester.user_id)
        return jsonify(result.to_dict())

    @app.route("/api/attendance/<gym_id>/<day>/<athlete_id>", methods=["DELETE"], endpoint="attendance_purge")
    @requester_required
    def attendance_purge(gym_id: str, day: str, athlete_id: str):
        gym_staff(gym_id, Role.ADMIN)
        if not container.attendance_store.purge(gym_id, athlete_id, day):
            raise NotFoundError("Attendance record not found")
        return jsonify({"deleted": True, "gymId": gym_id, "athleteId": athlete_id, "day": parse_iso_date(day).isoformat()})
