from __future__ import annotations

from flask import Flask, jsonify, request, send_from_directory

from ..common.http import Guards, current_user, error_response, json_body, server_error
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .avatars import AvatarUpload


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.tokens)

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        data = json_body()
        try:
            token = container.auth_service.register(
                name=data.get("name", ""),
                email=data.get("email", ""),
                password=data.get("password", ""),
                role=data.get("role") or "student",
            )
            return jsonify({"success": True, "token": token}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error during registration")

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = json_body()
        try:
            token = container.auth_service.login(email=data.get("email", ""), password=data.get("password", ""))
            return jsonify({"success": True, "token": token})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error during login")

    @app.route("/api/auth/update-password", methods=["PUT"], endpoint="auth_update_password")
    @guards.login_required
    def auth_update_password():
        data = json_body()
        try:
            container.auth_service.update_password(
                user_id=current_user().user_id,
                current_password=data.get("currentPassword", ""),
                new_password=data.get("newPassword", ""),
            )
            return jsonify({"success": True, "message": "Password updated successfully."})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while updating password")

    @app.route("/api/auth/forgot-password", methods=["POST"], endpoint="auth_forgot_password")
    def auth_forgot_password():
        try:
            message = container.auth_service.forgot_password(email=json_body().get("email", ""))
            return jsonify({"success": True, "message": message})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Email could not be sent")

    @app.route("/api/auth/reset-password/<token>", methods=["POST"], endpoint="auth_reset_password")
    def auth_reset_password(token: str):
        try:
            container.auth_service.reset_password(token=token, password=json_body().get("password", ""))
            return jsonify({"success": True, "message": "Password has been reset successfully."})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while resetting password")

    @app.route("/api/auth/create-teacher", methods=["POST"], endpoint="auth_create_teacher")
    @guards.admin_required
    def auth_create_teacher():
        data = json_body()
        try:
            teacher_id = container.user_service.create_teacher(
                name=data.get("name", ""),
                email=data.get("email", ""),
                password=data.get("password", ""),
            )
            return jsonify({"success": True, "message": "Teacher created successfully", "teacherId": teacher_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while creating teacher")

    @app.route("/api/users/me", methods=["GET"], endpoint="users_me")
    @guards.login_required
    def users_me():
        try:
            return jsonify({"success": True, "user": container.user_service.get_profile(user_id=current_user().user_id)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while loading profile")

    @app.route("/api/users/avatar", methods=["PUT"], endpoint="users_avatar")
    @guards.login_required
    def users_avatar():
        try:
            file = request.files.get("avatar")
            if file is None or not file.filename:
                raise ValidationError("No file uploaded")
            user = container.user_service.update_avatar(
                user_id=current_user().user_id,
                upload=AvatarUpload(filename=file.filename, content=file.read()),
            )
            return jsonify({"success": True, "message": "Avatar updated successfully", "user": user})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Server error while uploading avatar")

    @app.route("/uploads/avatars/<path:filename>", methods=["GET"], endpoint="avatar_file")
    def avatar_file(filename: str):
        return send_from_directory(container.avatars.directory.resolve(), filename)
