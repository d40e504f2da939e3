from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import Guards, current_user, error_response, json_body, server_error
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .csv_import import parse_roster_csv


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.tokens)

    @app.route("/api/students/add/<int:class_id>", methods=["POST"], endpoint="students_add")
    @guards.teacher_required
    def students_add(class_id: int):
        data = json_body()
        me = current_user()
        try:
            student = container.enrollment_service.add_student_to_class(
                current_role=me.role,
                user_id=me.user_id,
                class_id=class_id,
                name=data.get("name", ""),
                email=data.get("email", ""),
                roll_no=data.get("rollNo", ""),
                year=data.get("year"),
                department=data.get("department", ""),
            )
            return jsonify({"success": True, "message": "Student added to class successfully", "student": student}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while adding student")

    @app.route("/api/students/bulk-register/<int:class_id>", methods=["POST"], endpoint="students_bulk_register")
    @guards.teacher_required
    def students_bulk_register(class_id: int):
        me = current_user()
        try:
            upload = request.files.get("file")
            if upload is None or not upload.filename:
                raise ValidationError("Please upload a CSV file.")
            rows = parse_roster_csv(upload.read())
            result = container.enrollment_service.bulk_register(
                current_role=me.role, user_id=me.user_id, class_id=class_id, rows=rows
            )
            return jsonify(result.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Error processing CSV file")

    @app.route("/api/students/me", methods=["GET"], endpoint="students_me")
    @guards.login_required
    def students_me():
        try:
            student = container.student_service.get_my_profile(user_id=current_user().user_id)
            return jsonify({"success": True, "student": student.to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while loading student profile")

    @app.route("/api/students/<int:student_id>", methods=["GET"], endpoint="students_info")
    @guards.login_required
    def students_info(student_id: int):
        try:
            view = container.student_service.get_student_info(student_id=student_id)
            return jsonify({"success": True, "student": view.to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while loading student")
