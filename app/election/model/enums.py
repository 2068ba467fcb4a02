"""
Enums for the election model.
"""

import enum


class PostNameEnum(str, enum.Enum):
    president = "President"
    vice_president = "Vice President"
    secretary = "Secretary"
    joint_secretary = "Joint Secretary"
    treasurer = "Treasurer"
    event_organizer = "Event Organizer"
    sports_coordinator = "Sports Coordinator"
    media_coordinator = "Media Coordinator"

    @classmethod
    def has_value(cls, value):
        return value in cls._value2member_map_


# Seeding order of the posts, the voting session walks them in this order
DEFAULT_POSTS = [
    {"name": post, "order": index + 1} for index, post in enumerate(PostNameEnum)
]


class SessionStatusEnum(str, enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    ended = "ended"


class ElectionEventEnum(str, enum.Enum):
    """Events stored in the election log."""


class ElectionPublicEventEnum(ElectionEventEnum):
    STUDENTS_IMPORTED = "students_imported"
    STUDENT_CREATED = "student_created"
    CANDIDATE_CREATED = "candidate_created"
    CANDIDATE_EDITED = "candidate_edited"
    CANDIDATE_DELETED = "candidate_deleted"
    POSTS_RESTORED = "posts_restored"
    VOTING_STARTED = "voting_started"
    POST_ADVANCED = "post_advanced"
    VOTING_ENDED = "voting_ended"
    STUDENT_COMPLETED = "student_completed"
    RESULT_ANNOUNCED = "result_announced"


class ElectionAdminEventEnum(ElectionEventEnum):
    ADMIN_LOGIN = "admin_login"
    ADMIN_LOGIN_FAIL = "admin_login_fail"
    STUDENT_LOGIN = "student_login"
    STUDENT_LOGIN_FAIL = "student_login_fail"
    VOTE_COUNTS_RECONCILED = "vote_counts_reconciled"
