"""Typed records for backend rows."""

from pycheer.models._base import CheerBaseModel, CheerEnum, CheerRecord, CheerTimestamp, parse_timestamp
from pycheer.models.competition import Competition, Division
from pycheer.models.license_course import CourseType, LicenseCourse
from pycheer.models.news import NewsItem
from pycheer.models.profile import AuthUser, Profile, ProfileRole
from pycheer.models.province import Province
from pycheer.models.public_image import PublicImage
from pycheer.models.staff import Coach, Judge, StaffMember

__all__ = [
    "AuthUser",
    "CheerBaseModel",
    "CheerEnum",
    "CheerRecord",
    "CheerTimestamp",
    "Coach",
    "Competition",
    "CourseType",
    "Division",
    "Judge",
    "LicenseCourse",
    "NewsItem",
    "Profile",
    "ProfileRole",
    "Province",
    "PublicImage",
    "StaffMember",
    "parse_timestamp",
]
