from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import Guards, current_user, error_response, json_body, server_error
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.tokens)

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @guards.teacher_required
    def attendance_mark():
        data = json_body()
        me = current_user()
        try:
            sheet = container.attendance_service.mark_attendance(
                current_role=me.role,
                user_id=me.user_id,
                class_id=data.get("classId"),
                date=data.get("date"),
                records=data.get("records"),
                actor=me.name,
            )
            return jsonify({"success": True, "message": "Attendance marked successfully", "attendance": sheet})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while marking attendance")

    @app.route("/api/attendance/class/<int:class_id>", methods=["GET"], endpoint="attendance_for_class")
    @guards.login_required
    def attendance_for_class(class_id: int):
        me = current_user()
        try:
            sheet = container.attendance_service.get_class_attendance(
                current_role=me.role, user_id=me.user_id, class_id=class_id, date=request.args.get("date")
            )
            return jsonify({"success": True, "attendance": sheet})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while loading attendance")

    @app.route("/api/attendance/student/<int:student_user_id>", methods=["GET"], endpoint="attendance_for_student")
    @guards.login_required
    def attendance_for_student(student_user_id: int):
        me = current_user()
        try:
            history = container.attendance_service.get_student_history(
                current_role=me.role, user_id=me.user_id, student_user_id=student_user_id
            )
            return jsonify({"success": True, "count": len(history), "history": history})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while loading attendance history")

    @app.route("/api/attendance/report/class/<int:class_id>", methods=["GET"], endpoint="attendance_class_report")
    @guards.teacher_required
    def attendance_class_report(class_id: int):
        me = current_user()
        try:
            report = container.report_service.class_report(current_role=me.role, user_id=me.user_id, class_id=class_id)
            return jsonify({"success": True, "report": report})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while building class report")

    @app.route(
        "/api/attendance/report/class/<int:class_id>/student/<int:student_id>",
        methods=["GET"],
        endpoint="attendance_student_report",
    )
    @guards.teacher_required
    def attendance_student_report(class_id: int, student_id: int):
        me = current_user()
        try:
            report = container.report_service.student_class_report(
                current_role=me.role, user_id=me.user_id, class_id=class_id, student_id=student_id
            )
            return jsonify({"success": True, "report": report})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while building student report")
