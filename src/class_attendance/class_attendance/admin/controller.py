from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import Guards, error_response, server_error
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.tokens)

    @app.route("/api/admin/report/detained-count", methods=["GET"], endpoint="admin_detained_count")
    @guards.admin_required
    def admin_detained_count():
        try:
            return jsonify({"success": True, "detainedCount": container.admin_service.detained_count()})
        except Exception:
            return server_error("Server error while counting detained students")

    @app.route("/api/admin/teachers/list", methods=["GET"], endpoint="admin_teachers")
    @guards.admin_required
    def admin_teachers():
        try:
            teachers = container.admin_service.list_teachers()
            return jsonify({"success": True, "count": len(teachers), "teachers": teachers})
        except Exception:
            return server_error("Server error while listing teachers")

    @app.route("/api/admin/students/list", methods=["GET"], endpoint="admin_students")
    @guards.admin_required
    def admin_students():
        try:
            students = container.admin_service.list_students()
            return jsonify({"success": True, "count": len(students), "students": students})
        except Exception:
            return server_error("Server error while listing students")

    @app.route("/api/admin/classes/list", methods=["GET"], endpoint="admin_classes")
    @guards.admin_required
    def admin_classes():
        try:
            classes = container.admin_service.list_classes()
            return jsonify({"success": True, "count": len(classes), "classes": classes})
        except Exception:
            return server_error("Server error while listing classes")

    @app.route("/api/admin/teachers/<int:teacher_id>", methods=["DELETE"], endpoint="admin_delete_teacher")
    @guards.admin_required
    def admin_delete_teacher(teacher_id: int):
        try:
            orphaned = container.admin_service.delete_teacher(teacher_id=teacher_id)
            return jsonify(
                {
                    "success": True,
                    "message": "Teacher deleted successfully. Their classes are now unassigned.",
                    "orphanedClasses": orphaned,
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while deleting teacher")
