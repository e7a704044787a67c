from shared.helpers.date_helper import to_buddhist_year


def format_sequence_number(year: int, sequence: int) -> str:
    """Human-facing running number, e.g. 2567/01 for the first one of 2024."""
    if sequence < 1:
        raise ValueError("sequence must start at 1")
    return f"{to_buddhist_year(year)}/{sequence:02d}"


def next_sequence_number(year: int, existing_count: int) -> str:
    return format_sequence_number(year, (existing_count or 0) + 1)
