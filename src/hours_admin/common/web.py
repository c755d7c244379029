from __future__ import annotations

from functools import wraps

from flask import flash, jsonify, redirect, render_template, request, session, url_for

from ..core.enums import Role
from ..users.service import SessionUser


def _wants_json() -> bool:
    return request.path.startswith("/api/")


def current_user() -> SessionUser:
    return SessionUser.from_session(session)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            if _wants_json():
                return jsonify({"error": "Authentication required"}), 401
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("login"))
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            if _wants_json():
                return jsonify({"error": "Authentication required"}), 401
            return redirect(url_for("login"))

        if session.get("role") != Role.ADMIN.value:
            if _wants_json():
                return jsonify({"error": "Admin access required"}), 403
            user = {"full_name": session.get("name"), "role": session.get("role")}
            return render_template("403.html", current_user=user), 403

        return view(*args, **kwargs)

    return wrapper
