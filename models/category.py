"""Category model for transaction categorization."""

from dataclasses import dataclass

# Every user has exactly one category with this label. It collects the
# transactions of deleted categories and can be neither renamed nor deleted.
OTHER_CATEGORY_LABEL = "Other"


@dataclass
class Category:
    """Represents a user-owned transaction category.

    Attributes:
        id: Unique identifier (auto-generated).
        label: Category label (unique per user, case-sensitive).
        user_id: ID of the owning user. Never changes after creation.
    """

    id: int
    label: str
    user_id: int

    @property
    def is_other(self) -> bool:
        return self.label == OTHER_CATEGORY_LABEL

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "user_id": self.user_id}
