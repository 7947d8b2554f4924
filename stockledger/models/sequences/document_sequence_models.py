from sqlalchemy import Column, String, BigInteger, Sequence, CheckConstraint
from stockledger.core.db import Base
from stockledger.constants.sequences import DOCUMENT_SEQUENCES, SEQUENCE_MAX_VALUE


# Native sequences; created by metadata.create_all on dialects that support them.
NATIVE_SEQUENCES = {
    name: Sequence(name, start=1, increment=1, maxvalue=SEQUENCE_MAX_VALUE, metadata=Base.metadata)
    for name in DOCUMENT_SEQUENCES
}


class DocumentSequence(Base):
    """Counter rows for dialects without native sequences (SQLite in development)."""

    __tablename__ = "document_sequences"

    name = Column(String(50), primary_key=True)
    current_value = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (CheckConstraint("current_value >= 0", name="ck_document_sequence_non_negative"),)

    def __repr__(self):
        return f"<DocumentSequence name={self.name} value={self.current_value}>"
