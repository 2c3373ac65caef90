"""Year-token rendering for configured names and template-year identifiers."""

# Placeholder used in configured table, column and title names
YEAR_PLACEHOLDER = "{year}"


def render(template: str, year: int | str, token: str = YEAR_PLACEHOLDER) -> str:
    """Substitute every occurrence of ``token`` in ``template`` with ``year``.

    This is the only place year substitution happens. Configured names use the
    ``{year}`` placeholder; names and expressions read from template-year
    databases use the template year itself (e.g. "2025") as the token.

    Args:
        template: Name, title or expression possibly containing the token
        year: Target year
        token: Substring to replace (default: ``{year}``)

    Returns:
        Rendered string (unchanged if the token does not occur)

    Examples:
        >>> render("{year} Weeks", 2026)
        '2026 Weeks'
        >>> render("🗓️ 2025 Months", 2026, token="2025")
        '🗓️ 2026 Months'
    """
    if not token:
        return template
    return template.replace(token, str(year))
