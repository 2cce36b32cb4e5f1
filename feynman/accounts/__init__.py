"""
Accounts Module - Users, credentials and roster files.

Components:
- credential_store: Login, password rotation/reset, batch registration
- roster_io: Roster CSV import and student report export
"""

from .credential_store import (
    COACH_USERNAME,
    TEST_STUDENT_USERNAME,
    CredentialStore,
    LoginResult,
    RosterEntry,
    hash_password,
)
from .roster_io import (
    RosterImport,
    RowRejection,
    build_student_report,
    parse_roster,
    read_roster_csv,
    write_student_report_csv,
)

__all__ = [
    "COACH_USERNAME",
    "TEST_STUDENT_USERNAME",
    "CredentialStore",
    "LoginResult",
    "RosterEntry",
    "hash_password",
    "RosterImport",
    "RowRejection",
    "build_student_report",
    "parse_roster",
    "read_roster_csv",
    "write_student_report_csv",
]
