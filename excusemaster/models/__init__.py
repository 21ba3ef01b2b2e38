"""excusemaster/models — shared dataclass schema."""
