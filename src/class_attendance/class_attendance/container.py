from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .admin.service import AdminService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.reports import ReportService
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.tally_cache import TallyCache
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.repository import ClassRepository
from .classes.service import ClassService
from .database.connection import DBConfig, DatabaseConnection
from .realtime.notifier import NotifierRelay
from .realtime.stats import DashboardStatsService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import EnrollmentService, StudentService
from .users.avatars import AvatarStorage
from .users.mailer import LogMailer, Mailer, SMTPMailer, SMTPSettings
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    students_repo: StudentRepository
    classes_repo: ClassRepository
    attendance_repo: AttendanceRepository

    tokens: TokenService
    avatars: AvatarStorage
    notifier: NotifierRelay
    stats: DashboardStatsService
    tally_cache: TallyCache

    auth_service: AuthService
    user_service: UserService
    class_service: ClassService
    enrollment_service: EnrollmentService
    student_service: StudentService
    attendance_service: AttendanceService
    report_service: ReportService
    admin_service: AdminService


def assemble(
    *,
    users_repo: UserRepository,
    students_repo: StudentRepository,
    classes_repo: ClassRepository,
    attendance_repo: AttendanceRepository,
    tokens: TokenService,
    mailer: Mailer,
    avatars: AvatarStorage,
    default_student_password: str,
    frontend_url: str,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in the app, fakes in tests)."""
    notifier = NotifierRelay()
    tally_cache = TallyCache()

    report_service = ReportService(attendance_repo, classes_repo, students_repo, cache=tally_cache)

    return Container(
        conn=conn,
        users_repo=users_repo,
        students_repo=students_repo,
        classes_repo=classes_repo,
        attendance_repo=attendance_repo,
        tokens=tokens,
        avatars=avatars,
        notifier=notifier,
        stats=DashboardStatsService(users_repo, students_repo, classes_repo),
        tally_cache=tally_cache,
        auth_service=AuthService(
            users_repo, tokens, mailer=mailer, notifier=notifier, frontend_url=frontend_url
        ),
        user_service=UserService(users_repo, avatars=avatars, notifier=notifier),
        class_service=ClassService(classes_repo, students_repo, notifier=notifier),
        enrollment_service=EnrollmentService(
            users_repo,
            students_repo,
            classes_repo,
            default_password=default_student_password,
            notifier=notifier,
            max_workers=max(conn.pool_size - 1, 1) if conn else None,
        ),
        student_service=StudentService(students_repo),
        attendance_service=AttendanceService(
            attendance_repo, classes_repo, students_repo, cache=tally_cache, notifier=notifier
        ),
        report_service=report_service,
        admin_service=AdminService(users_repo, classes_repo, report_service, notifier=notifier),
    )


def _build_mailer(settings: Any) -> Mailer:
    host = getattr(settings, "SMTP_HOST", "")
    if not host:
        return LogMailer(include_body=bool(getattr(settings, "DEBUG", False)))
    return SMTPMailer(
        SMTPSettings(
            host=host,
            port=int(getattr(settings, "SMTP_PORT", 587)),
            username=getattr(settings, "SMTP_USERNAME", ""),
            password=getattr(settings, "SMTP_PASSWORD", ""),
            use_tls=bool(getattr(settings, "SMTP_USE_TLS", True)),
            sender=getattr(settings, "MAIL_SENDER", SMTPSettings.sender),
        )
    )


def build_container(settings: Any) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(settings.DB_CONFIG))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        classes_repo=MySQLClassRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        tokens=TokenService(settings.JWT_SECRET, expires_hours=int(getattr(settings, "JWT_EXPIRES_HOURS", 24))),
        mailer=_build_mailer(settings),
        avatars=AvatarStorage(getattr(settings, "UPLOAD_DIR", "uploads/avatars")),
        default_student_password=settings.DEFAULT_STUDENT_PASSWORD,
        frontend_url=getattr(settings, "FRONTEND_URL", "http://localhost:5173"),
        conn=conn,
    )
