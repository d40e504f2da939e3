from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import Guards, current_user, error_response, json_body, server_error
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.tokens)

    @app.route("/api/class", methods=["POST"], endpoint="class_create")
    @guards.teacher_required
    def class_create():
        data = json_body()
        me = current_user()
        try:
            course = container.class_service.create_class(
                current_role=me.role,
                user_id=me.user_id,
                name=data.get("name", ""),
                subject=data.get("subject", ""),
            )
            return jsonify({"success": True, "class": course.to_dict()}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while creating class")

    @app.route("/api/class", methods=["GET"], endpoint="class_list")
    @guards.teacher_required
    def class_list():
        try:
            classes = container.class_service.list_classes(user_id=current_user().user_id)
            return jsonify({"success": True, "count": len(classes), "classes": classes})
        except Exception:
            return server_error("Server error while listing classes")

    @app.route("/api/class/<int:class_id>", methods=["GET"], endpoint="class_details")
    @guards.teacher_required
    def class_details(class_id: int):
        me = current_user()
        try:
            data = container.class_service.get_class_details(current_role=me.role, user_id=me.user_id, class_id=class_id)
            return jsonify({"success": True, "class": data})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while loading class")

    @app.route("/api/class/<int:class_id>", methods=["PUT"], endpoint="class_update")
    @guards.teacher_required
    def class_update(class_id: int):
        data = json_body()
        me = current_user()
        try:
            course = container.class_service.update_class(
                current_role=me.role,
                user_id=me.user_id,
                class_id=class_id,
                name=data.get("name"),
                subject=data.get("subject"),
            )
            return jsonify({"success": True, "class": course.to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while updating class")

    @app.route("/api/class/<int:class_id>", methods=["DELETE"], endpoint="class_delete")
    @guards.teacher_required
    def class_delete(class_id: int):
        me = current_user()
        try:
            container.class_service.delete_class(current_role=me.role, user_id=me.user_id, class_id=class_id)
            return jsonify({"success": True, "message": "Class deleted successfully"})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while deleting class")
