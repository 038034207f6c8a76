"""Shared types for feedbacksync.

This module defines the enums used by the record model, the remote
adapter, the notification emitter and the synchronization core.
"""

from __future__ import annotations

from enum import Enum


class SubmissionStatus(str, Enum):
    """Lifecycle status of a feedback submission.

    Values are the backend enum keys; ``label`` is the display text.
    """

    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"
    MORE_INFO_NEEDED = "MORE_INFO_NEEDED"

    @property
    def label(self) -> str:
        """Human-readable label."""
        return _STATUS_LABELS[self]


_STATUS_LABELS: dict[SubmissionStatus, str] = {
    SubmissionStatus.SUBMITTED: "Submitted",
    SubmissionStatus.UNDER_REVIEW: "Under Review",
    SubmissionStatus.IN_PROGRESS: "In Progress",
    SubmissionStatus.RESOLVED: "Resolved",
    SubmissionStatus.REJECTED: "Rejected",
    SubmissionStatus.MORE_INFO_NEEDED: "More Info Needed",
}


class ServiceCategory(str, Enum):
    """Service a submission is about. Immutable after creation."""

    STUDENT_TRANSPORTATION_SERVICES = "STUDENT_TRANSPORTATION_SERVICES"
    FOOD_SERVICES = "FOOD_SERVICES"
    STUDENT_CLINIC = "STUDENT_CLINIC"
    LIBRARY_SERVICES = "LIBRARY_SERVICES"
    SPORTS_ACTIVITIES_COMPLEX = "SPORTS_ACTIVITIES_COMPLEX"
    INTERNATIONAL_DORMITORIES = "INTERNATIONAL_DORMITORIES"
    LANGUAGE_CENTER = "LANGUAGE_CENTER"
    E_LEARNING_PLATFORM = "E_LEARNING_PLATFORM"
    REGISTRATION_AND_ADMISSIONS_SERVICES = "REGISTRATION_AND_ADMISSIONS_SERVICES"
    JORDAN_UNIVERSITY_HOSPITAL = "JORDAN_UNIVERSITY_HOSPITAL"
    FINANCIAL_AID_AND_SCHOLARSHIPS = "FINANCIAL_AID_AND_SCHOLARSHIPS"
    IT_SUPPORT_SERVICES = "IT_SUPPORT_SERVICES"
    CAREER_GUIDANCE_AND_COUNSELING = "CAREER_GUIDANCE_AND_COUNSELING"
    STUDENT_AFFAIRS_AND_EXTRACURRICULAR_ACTIVITIES = (
        "STUDENT_AFFAIRS_AND_EXTRACURRICULAR_ACTIVITIES"
    )
    SECURITY_AND_CAMPUS_SAFETY = "SECURITY_AND_CAMPUS_SAFETY"
    MAINTENANCE_AND_FACILITIES_MANAGEMENT = "MAINTENANCE_AND_FACILITIES_MANAGEMENT"
    PARKING_SERVICES = "PARKING_SERVICES"
    PRINTING_AND_PHOTOCOPYING_SERVICES = "PRINTING_AND_PHOTOCOPYING_SERVICES"
    BOOKSTORE_SERVICES = "BOOKSTORE_SERVICES"
    ALUMNI_RELATIONS_OFFICE = "ALUMNI_RELATIONS_OFFICE"

    @property
    def label(self) -> str:
        """Human-readable label."""
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS: dict[ServiceCategory, str] = {
    ServiceCategory.STUDENT_TRANSPORTATION_SERVICES: "Student Transportation Services",
    ServiceCategory.FOOD_SERVICES: "Food Services",
    ServiceCategory.STUDENT_CLINIC: "Student Clinic",
    ServiceCategory.LIBRARY_SERVICES: "Library Services",
    ServiceCategory.SPORTS_ACTIVITIES_COMPLEX: "Sports Activities Complex",
    ServiceCategory.INTERNATIONAL_DORMITORIES: "International Dormitories",
    ServiceCategory.LANGUAGE_CENTER: "Language Center",
    ServiceCategory.E_LEARNING_PLATFORM: "E-learning Platform",
    ServiceCategory.REGISTRATION_AND_ADMISSIONS_SERVICES: (
        "Registration and Admissions Services"
    ),
    ServiceCategory.JORDAN_UNIVERSITY_HOSPITAL: "Jordan University Hospital",
    ServiceCategory.FINANCIAL_AID_AND_SCHOLARSHIPS: "Financial Aid and Scholarships",
    ServiceCategory.IT_SUPPORT_SERVICES: "IT Support Services",
    ServiceCategory.CAREER_GUIDANCE_AND_COUNSELING: "Career Guidance and Counseling",
    ServiceCategory.STUDENT_AFFAIRS_AND_EXTRACURRICULAR_ACTIVITIES: (
        "Student Affairs & Extracurricular Activities"
    ),
    ServiceCategory.SECURITY_AND_CAMPUS_SAFETY: "Security & Campus Safety",
    ServiceCategory.MAINTENANCE_AND_FACILITIES_MANAGEMENT: (
        "Maintenance & Facilities Management"
    ),
    ServiceCategory.PARKING_SERVICES: "Parking Services",
    ServiceCategory.PRINTING_AND_PHOTOCOPYING_SERVICES: (
        "Printing & Photocopying Services"
    ),
    ServiceCategory.BOOKSTORE_SERVICES: "Bookstore Services",
    ServiceCategory.ALUMNI_RELATIONS_OFFICE: "Alumni Relations Office",
}


class ReplyRole(str, Enum):
    """Author role of a reply.

    The upper-case value is the only form ever written. Lookup is
    case-insensitive so older lower-case tags decode to the same member.
    """

    SUBMITTER = "GENERAL"
    REVIEWER = "ADMIN"

    @classmethod
    def _missing_(cls, value: object) -> ReplyRole | None:
        if isinstance(value, str):
            normalized = value.strip().upper()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class Phase(str, Enum):
    """Execution phase of a synchronization core.

    Distinct from the record's own ``SubmissionStatus``.
    """

    IDLE = "idle"
    LOADING = "loading"
    MUTATING = "mutating"


class NotificationType(str, Enum):
    """Kind of in-app notification, as named by the backend."""

    STATUS_CHANGED = "STATUS_CHANGED"
    NEW_ADMIN_REPLY = "NEW_ADMIN_REPLY"
    NEW_USER_REPLY = "NEW_USER_REPLY"
    GENERAL_INFO = "GENERAL_INFO"
