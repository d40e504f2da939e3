"""Class Attendance package.

Organized by feature modules (users, classes, students, attendance, admin,
realtime) with thin Flask controllers over service/repository layers.
"""
