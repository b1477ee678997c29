from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

SUPER_ADMIN = 1


@dataclass
class User:
    user_id: int
    user_name: str = ""
    user_type_id: int = 3
    home_folder_id: int = 1
    api_key: Optional[str] = None

    # Feature names, e.g. "folder.add", "dataset.modify"
    features: List[str] = field(default_factory=list)

    @classmethod
    def from_record(cls, rec: Mapping[str, Any]) -> "User":
        return cls(
            user_id=int(rec["userId"]),
            user_name=str(rec.get("userName") or ""),
            user_type_id=int(rec.get("userTypeId") or 3),
            home_folder_id=int(rec.get("homeFolderId") or 1),
            api_key=rec.get("apiKey"),
            features=list(rec.get("features") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "userName": self.user_name,
            "userTypeId": self.user_type_id,
            "homeFolderId": self.home_folder_id,
            "features": list(self.features),
        }

    def is_super_admin(self) -> bool:
        return self.user_type_id == SUPER_ADMIN

    def feature_enabled(self, feature: str) -> bool:
        return self.is_super_admin() or feature in self.features

    # ── permissions ──────────────────────────────────────────────────────────
    def _check(self, entity: Mapping[str, Any], level: str) -> bool:
        if self.is_super_admin():
            return True
        if entity.get("ownerId") == self.user_id:
            return True
        perms = (entity.get("permissions") or {}).get(str(self.user_id)) or {}
        return bool(perms.get(level, False))

    def check_viewable(self, entity: Mapping[str, Any]) -> bool:
        return self._check(entity, "view")

    def check_editable(self, entity: Mapping[str, Any]) -> bool:
        return self._check(entity, "edit")

    def check_deleteable(self, entity: Mapping[str, Any]) -> bool:
        return self._check(entity, "delete")
