"""Platform and status enumerations shared by all pipelines."""

from enum import Enum


class BuildPlatform(str, Enum):
    """Target platforms a pipeline can be registered for."""

    WEB = "web"
    WECHAT_MINIGAME = "wechat-minigame"
    BYTEDANCE_MINIGAME = "bytedance-minigame"
    ALIPAY_MINIGAME = "alipay-minigame"
    DESKTOP = "desktop"
    ANDROID = "android"
    IOS = "ios"


_STATUS_RANK = {
    "idle": 0,
    "preparing": 1,
    "compiling": 2,
    "copying": 3,
    "post-processing": 4,
    "completed": 5,
    "failed": 5,
    "cancelled": 5,
}


class BuildStatus(str, Enum):
    """Lifecycle states of a build task.

    Statuses are ordered: a task moves from PREPARING through
    POST_PROCESSING and ends in exactly one terminal state.
    """

    IDLE = "idle"
    PREPARING = "preparing"
    COMPILING = "compiling"
    COPYING = "copying"
    POST_PROCESSING = "post-processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self.value]

    @property
    def is_terminal(self) -> bool:
        return self in (BuildStatus.COMPLETED, BuildStatus.FAILED, BuildStatus.CANCELLED)

    def advance(self, next_status: "BuildStatus") -> "BuildStatus":
        """Return the status after moving towards ``next_status``.

        Terminal statuses never change and a lower-ranked status never
        replaces a higher one.
        """
        if self.is_terminal:
            return self
        if next_status.rank < self.rank:
            return self
        return next_status
