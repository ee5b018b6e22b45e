#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Enumeration with tag, label and description for every member.

Members compare equal to their tag or label and are ordered by the tag, which lets
closed algorithm enumerations express "stronger/preferred first" directly.
"""

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from typing_extensions import Self

from otacrypto.exceptions import OTAKeyError, OTATypeError


@dataclass(frozen=True)
class OtaEnumMember:
    """Value of an enumeration member."""

    tag: int
    label: str
    description: Optional[str] = None


@functools.total_ordering
class OtaEnum(OtaEnumMember, Enum):
    """Enumeration with lookup by tag or label, ordered by tag."""

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OtaEnum):
            return (self.tag, self.label) == (other.tag, other.label)
        return other in (self.tag, self.label)

    def __hash__(self) -> int:
        return hash((self.tag, self.label, self.description))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, OtaEnum):
            return NotImplemented
        return self.tag < other.tag

    @classmethod
    def _find(cls, matches: Callable[[Self], bool], what: str) -> Self:
        for member in cls:
            if matches(member):
                return member
        raise OTAKeyError(f"There is no {cls.__name__} item with {what}")

    @classmethod
    def labels(cls) -> list[str]:
        """Get labels of all members in definition order.

        :return: Labels.
        """
        return [member.label for member in cls]

    @classmethod
    def tags(cls) -> list[int]:
        """Get tags of all members in definition order.

        :return: Tags.
        """
        return [member.tag for member in cls]

    @classmethod
    def from_tag(cls, tag: int) -> Self:
        """Get member by tag.

        :param tag: Member tag.
        :raises OTAKeyError: No member has the tag.
        :return: Member.
        """
        return cls._find(lambda member: member.tag == tag, f"tag {tag}")

    @classmethod
    def from_label(cls, label: str) -> Self:
        """Get member by case-insensitive label.

        :param label: Member label.
        :raises OTAKeyError: Label isn't a string or no member has it.
        :return: Member.
        """
        if not isinstance(label, str):
            raise OTAKeyError(f"{cls.__name__} label must be a string, not {label!r}")
        wanted = label.upper()
        return cls._find(lambda member: member.label.upper() == wanted, f"label {label}")

    @classmethod
    def get_label(cls, tag: int) -> str:
        """Get label of the member with the tag.

        :param tag: Member tag.
        :return: Member label.
        """
        return cls.from_tag(tag).label

    @classmethod
    def contains(cls, obj: Union[int, str]) -> bool:
        """Check whether a member has the tag or label.

        :param obj: Tag or label.
        :raises OTATypeError: Object is neither tag nor label.
        :return: True when such member exists.
        """
        if not isinstance(obj, (int, str)):
            raise OTATypeError(f"{cls.__name__} tag or label expected, got {obj!r}")
        lookup = cls.from_tag if isinstance(obj, int) else cls.from_label
        try:
            lookup(obj)  # type: ignore[arg-type]
        except OTAKeyError:
            return False
        return True
