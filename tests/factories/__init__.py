"""Test data factories."""

from tests.factories.schemas import (
    LoginRequestFactory,
    StudentCreateFactory,
    TeacherJoinFactory,
    random_mobile,
)


__all__ = [
    "LoginRequestFactory",
    "StudentCreateFactory",
    "TeacherJoinFactory",
    "random_mobile",
]
