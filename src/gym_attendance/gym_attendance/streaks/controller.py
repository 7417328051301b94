from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import current_requester, requester_required
from ..core.exceptions import AuthorizationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def self_or_staff(athlete_id: str) -> None:
        # Athletes see their own streak; admins and coaches see anyone's.
        requester = current_requester()
        if requester.user_id != athlete_id and not requester.is_staff:
            raise AuthorizationError("You do not have permission to view this streak")

    @app.route("/api/athletes/<athlete_id>/streak", methods=["GET"], endpoint="athlete_streak")
    @requester_required
    def athlete_streak(athlete_id: str):
        self_or_staff(athlete_id)
        view = container.projector.athlete_streak(athlete_id, today=request.args.get("today"))
        return jsonify(view.to_dict())

    @app.route("/api/athletes/<athlete_id>/streak/history", methods=["GET"], endpoint="athlete_streak_history")
    @requester_required
    def athlete_streak_history(athlete_id: str):
        self_or_staff(athlete_id)
        view = container.projector.streak_history(athlete_id)
        return jsonify(view.to_dict())
