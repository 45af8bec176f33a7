from uuid import UUID


def parse_uuid(value: str) -> UUID | None:
    """Path ids that are not UUIDs simply match nothing."""
    try:
        return UUID(value)
    except ValueError:
        return None
