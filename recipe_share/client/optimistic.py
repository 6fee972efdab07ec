# recipe_share/client/optimistic.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from recipe_share.client.data_client import DataClient, QueryResult

log = logging.getLogger("client.optimistic")


@dataclass
class LikeTally:
    """
    Displayed like/dislike counts for one recipe plus the caller's own vote.

    toggle() moves the counts first, then sends the mutation. If the server
    rejects it, the tally is rebuilt from a fresh `recipe_likes` fetch
    rather than undone by hand.
    """
    recipe_id: str
    user_id: Optional[str] = None
    likes: int = 0
    dislikes: int = 0
    user_vote: Optional[bool] = None
    like_id: Optional[str] = None

    @classmethod
    def from_rows(cls, recipe_id: str, user_id: Optional[str], rows: Iterable[Dict[str, Any]]) -> "LikeTally":
        tally = cls(recipe_id=recipe_id, user_id=user_id)
        tally.recompute(rows)
        return tally

    def recompute(self, rows: Iterable[Dict[str, Any]]) -> None:
        self.likes = self.dislikes = 0
        self.user_vote = self.like_id = None
        for row in rows:
            if row.get("recipe_id") != self.recipe_id:
                continue
            if row.get("is_like"):
                self.likes += 1
            else:
                self.dislikes += 1
            if self.user_id and row.get("user_id") == self.user_id:
                self.user_vote = bool(row.get("is_like"))
                self.like_id = row.get("id")

    def refresh(self, client: DataClient) -> QueryResult:
        res = client.collection("recipe_likes").select()
        if res.ok:
            self.recompute(res.data or [])
        return res

    def toggle(self, client: DataClient, is_like: bool) -> QueryResult:
        """Like/dislike button press: same vote again clears it, otherwise sets it."""
        if self.user_vote is is_like and self.like_id:
            self._apply(is_like, -1)
            self.user_vote = None
            res = client.collection("recipe_likes").delete().eq("id", self.like_id)
            if res.ok:
                self.like_id = None
        else:
            if self.user_vote is not None:
                self._apply(self.user_vote, -1)
            self._apply(is_like, +1)
            self.user_vote = is_like
            res = client.collection("recipe_likes").insert({"recipe_id": self.recipe_id, "is_like": is_like})
            if res.ok and isinstance(res.data, dict):
                self.like_id = res.data.get("id")

        if res.error:
            log.info("Vote on %s failed (%s); refetching counts", self.recipe_id, res.error.code)
            self.refresh(client)
        return res

    def _apply(self, is_like: bool, delta: int) -> None:
        if is_like:
            self.likes = max(0, self.likes + delta)
        else:
            self.dislikes = max(0, self.dislikes + delta)
