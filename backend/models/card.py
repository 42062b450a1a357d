"""Flashcard model belonging to exactly one deck."""

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.models.base import Base, TimestampMixin


class Card(Base, TimestampMixin):
    """A front/back flashcard. Deleted with its deck via ``ON DELETE CASCADE``."""

    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    deck_id: Mapped[int] = mapped_column(
        ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    front: Mapped[str] = mapped_column(Text, nullable=False)  # e.g. "Dog" or a question
    back: Mapped[str] = mapped_column(Text, nullable=False)  # e.g. "Anjing" or the answer

    deck: Mapped["Deck"] = relationship(back_populates="cards")  # type: ignore[name-defined] # noqa: F821
