"""
课后反思（Lesson Reflection）状态机

状态流转：
    draft -> submitted -> marked / rejected
    marked / rejected -> submitted  （resubmit）

没有终态，反思可以无限次重新提交。draft 可在任意状态下由学员重新进入（保存草稿），
前端也可以不调用服务端直接回到草稿编辑。
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from app.core.exceptions import NotFoundError, ValidationError


class ReflectionStatus(str, Enum):
    """反思状态枚举"""
    DRAFT = "draft"           # 草稿
    SUBMITTED = "submitted"   # 已提交，等待批改
    MARKED = "marked"         # 已批改
    REJECTED = "rejected"     # 被退回


class ReflectionAction(str, Enum):
    """反思操作枚举"""
    SAVE_DRAFT = "save_draft"
    SUBMIT = "submit"
    RESUBMIT = "resubmit"
    MARK = "mark"


ALL_STATUSES: FrozenSet[ReflectionStatus] = frozenset(ReflectionStatus)
MARK_STATUSES: FrozenSet[ReflectionStatus] = frozenset(
    {ReflectionStatus.MARKED, ReflectionStatus.REJECTED}
)

MIN_SCORE = 0
MAX_SCORE = 10


@dataclass(frozen=True)
class Transition:
    """
    一条状态转换规则

    Attributes:
        action: 操作
        allowed_from: 允许的当前状态
        targets: 可到达的目标状态
        creates_row: 记录不存在时是否新建（upsert）
        stamps_submitted_at: 是否刷新 submitted_at
        stamps_marked_at: 是否刷新 marked_at
        requires_trimmed_text: 文本去除首尾空白后仍需非空
    """
    action: ReflectionAction
    allowed_from: FrozenSet[ReflectionStatus]
    targets: FrozenSet[ReflectionStatus]
    creates_row: bool
    stamps_submitted_at: bool = False
    stamps_marked_at: bool = False
    requires_trimmed_text: bool = False


TRANSITIONS: Dict[ReflectionAction, Transition] = {
    # 保存草稿：任何状态都强制回到 draft，文本只需非空
    ReflectionAction.SAVE_DRAFT: Transition(
        action=ReflectionAction.SAVE_DRAFT,
        allowed_from=ALL_STATUSES,
        targets=frozenset({ReflectionStatus.DRAFT}),
        creates_row=True,
    ),
    # 提交：任何状态（包括已提交，幂等）都可以提交，不存在时新建
    ReflectionAction.SUBMIT: Transition(
        action=ReflectionAction.SUBMIT,
        allowed_from=ALL_STATUSES,
        targets=frozenset({ReflectionStatus.SUBMITTED}),
        creates_row=True,
        stamps_submitted_at=True,
        requires_trimmed_text=True,
    ),
    # 重新提交：与提交相同，但记录必须已存在
    ReflectionAction.RESUBMIT: Transition(
        action=ReflectionAction.RESUBMIT,
        allowed_from=ALL_STATUSES,
        targets=frozenset({ReflectionStatus.SUBMITTED}),
        creates_row=False,
        stamps_submitted_at=True,
        requires_trimmed_text=True,
    ),
    # 批改（管理员）：结果为 marked 或 rejected
    ReflectionAction.MARK: Transition(
        action=ReflectionAction.MARK,
        allowed_from=ALL_STATUSES,
        targets=MARK_STATUSES,
        creates_row=False,
        stamps_marked_at=True,
    ),
}


def validate_reflection_text(action: ReflectionAction, text: Optional[str]) -> str:
    """
    校验学员提交的反思文本

    Raises:
        ValidationError: 文本缺失或为空
    """
    transition = TRANSITIONS[action]
    if transition.requires_trimmed_text:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Reflection text cannot be empty", field="reflection_text")
    elif not text:
        raise ValidationError("Reflection text is required", field="reflection_text")
    return text


def parse_mark_status(value: Optional[str]) -> ReflectionStatus:
    """
    解析批改结果状态

    Raises:
        ValidationError: 不是 marked / rejected
    """
    try:
        status = ReflectionStatus(value)
    except ValueError:
        status = None
    if status not in MARK_STATUSES:
        raise ValidationError("Status must be 'marked' or 'rejected'", field="status")
    return status


def validate_score(score) -> int:
    """
    校验批改分数（0-10）

    Raises:
        ValidationError: 分数越界或不是整数
    """
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValidationError("Score must be between 0 and 10", field="score")
    if score < MIN_SCORE or score > MAX_SCORE:
        raise ValidationError("Score must be between 0 and 10", field="score")
    if not float(score).is_integer():
        raise ValidationError("Score must be a whole number", field="score")
    return int(score)


def apply_transition(
    action: ReflectionAction,
    current: Optional[ReflectionStatus],
    target: Optional[ReflectionStatus] = None,
) -> ReflectionStatus:
    """
    计算一次操作后的目标状态

    Args:
        action: 操作
        current: 当前状态，记录不存在时为 None
        target: 目标状态（仅当规则有多个目标时需要，如 MARK）

    Returns:
        转换后的状态

    Raises:
        NotFoundError: 操作要求记录已存在但记录不存在
        ValidationError: 当前状态不允许该操作，或目标状态不合法
    """
    transition = TRANSITIONS[action]

    if current is None:
        if not transition.creates_row:
            raise NotFoundError("Reflection not found")
    elif current not in transition.allowed_from:
        raise ValidationError(
            f"Cannot {action.value} a reflection in status '{current.value}'", field="status"
        )

    if target is None:
        if len(transition.targets) != 1:
            raise ValidationError(f"Target status is required for {action.value}", field="status")
        (target,) = transition.targets
    elif target not in transition.targets:
        raise ValidationError(f"Invalid target status '{target.value}'", field="status")

    return target


def transition_timestamps(action: ReflectionAction, now: datetime) -> Dict[str, datetime]:
    """返回该操作需要刷新的时间戳列"""
    transition = TRANSITIONS[action]
    stamps = {"updated_at": now}
    if transition.stamps_submitted_at:
        stamps["submitted_at"] = now
    if transition.stamps_marked_at:
        stamps["marked_at"] = now
    return stamps
