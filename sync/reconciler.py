"""
Reconciliation of remote quotes into the local repository.

Merging is one-directional enrichment: remote quotes with unseen text are
appended, conflicting categories are adjudicated by a ConflictPolicy, and
nothing is ever deleted locally.

Changes are staged on a copy and applied to the repository in one step, so a
decider that raises leaves both memory and storage untouched.

A remote snapshot holding the same text twice with different categories is
never idempotent: the second record always conflicts with the first, so every
cycle over that snapshot reports changed=True.
"""

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Union

from utils import reconciler_logger, log_execution, ConfigurationError
from database.models import Quote
from database.repository import QuoteRepository, find_first_index

ConflictDecider = Callable[[Quote, Quote], Union[bool, Awaitable[bool]]]


class ConflictPolicy(ABC):
    """冲突处理策略"""

    name = "abstract"

    @abstractmethod
    async def take_remote(self, local: Quote, remote: Quote) -> bool:
        """返回 True 表示采用远程版本"""


class ServerWinsPolicy(ConflictPolicy):
    """服务器优先：总是采用远程分类"""

    name = "server_wins"

    async def take_remote(self, local: Quote, remote: Quote) -> bool:
        return True


class LocalWinsPolicy(ConflictPolicy):
    """本地优先：总是保留本地分类"""

    name = "local_wins"

    async def take_remote(self, local: Quote, remote: Quote) -> bool:
        return False


class InteractivePolicy(ConflictPolicy):
    """交互式：把冲突交给外部决策者（人或回调），决策者可以是同步或异步函数"""

    name = "interactive"

    def __init__(self, decide: ConflictDecider):
        self.decide = decide

    async def take_remote(self, local: Quote, remote: Quote) -> bool:
        decision = self.decide(local, remote)
        if inspect.isawaitable(decision):
            decision = await decision
        return bool(decision)


def create_policy(name: str, decide: Optional[ConflictDecider] = None) -> ConflictPolicy:
    """根据名称创建冲突策略"""
    key = name.lower()
    if key == ServerWinsPolicy.name:
        return ServerWinsPolicy()
    if key == LocalWinsPolicy.name:
        return LocalWinsPolicy()
    if key == InteractivePolicy.name:
        if decide is None:
            raise ConfigurationError("Interactive conflict policy requires a decision callback")
        return InteractivePolicy(decide)
    raise ConfigurationError(f"Unknown conflict policy: {name}")


@dataclass(frozen=True)
class MergeResult:
    """合并结果"""
    changed: bool = False
    added: int = 0
    updated: int = 0
    conflicts: int = 0
    kept_local: int = 0

    @property
    def message(self) -> str:
        if self.updated:
            return "Quotes synced with conflicts resolved."
        return "Quotes synced from server."


class Reconciler:
    """把远程语录合并到本地仓库"""

    def __init__(self, policy: Optional[ConflictPolicy] = None):
        self.policy = policy or ServerWinsPolicy()

    @log_execution("Reconciler", "merge")
    async def merge(self, repository: QuoteRepository, remote_quotes: Sequence[Quote]) -> MergeResult:
        """按远程顺序逐条合并，发生变化时统一持久化一次"""
        changed = False
        added = updated = conflicts = kept_local = 0
        # 在副本上合并，裁决过程中出错时仓库与存储均保持原状
        base = repository.list()
        staged = list(base)

        for remote in remote_quotes:
            index = find_first_index(staged, remote.text)

            if index is None:
                staged.append(remote)
                added += 1
                changed = True
                continue

            local = staged[index]
            if local.category == remote.category:
                continue

            conflicts += 1
            if await self.policy.take_remote(local, remote):
                staged[index] = remote
                updated += 1
            else:
                kept_local += 1
            # 冲突已裁决，无论哪一方胜出都视为发生变化
            changed = True

        if changed:
            # 等待裁决期间新增的本地语录只会追加在末尾，保留在合并结果之后
            staged.extend(repository.list()[len(base):])
            repository.apply_merged(staged)

        result = MergeResult(changed=changed, added=added, updated=updated,
                             conflicts=conflicts, kept_local=kept_local)
        if changed:
            reconciler_logger.info(
                f"[Reconciler] Merged {len(remote_quotes)} remote quotes "
                f"(policy={self.policy.name}): added={added} updated={updated} "
                f"conflicts={conflicts} kept_local={kept_local}"
            )
        else:
            reconciler_logger.debug(f"[Reconciler] {len(remote_quotes)} remote quotes already consistent")
        return result
