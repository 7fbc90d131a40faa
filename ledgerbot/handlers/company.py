"""Company profile handlers."""

from ledgerbot.handlers.base import HandlerContext, HandlerResult, failure, row_value
from ledgerbot.query.models import CompanyResult
from ledgerbot.sources.base import CompanyRecord

COMPANY_QUERY = "SELECT $Name, $Address, $Phone, $Email FROM Company"
ADDRESS_QUERY = "SELECT $Name, $Address FROM Company"

_PLACEHOLDERS = {"", "—", "-"}


def _field(row: dict, key: str) -> str | None:
    value = row_value(row, key)
    if value is None or str(value).strip() in _PLACEHOLDERS:
        return None
    return str(value).strip()


def _company(row: dict) -> CompanyRecord:
    return CompanyRecord(
        name=_field(row, "Name") or "",
        address=_field(row, "Address"),
        phone=_field(row, "Phone"),
        email=_field(row, "Email"),
    )


async def company_info(ctx: HandlerContext, query: str) -> HandlerResult:
    result = await ctx.source.execute_query(COMPANY_QUERY)
    if not (result.success and result.rows):
        return failure(ctx.stamp.append("Company information not found in Tally database"))

    company = _company(result.rows[0])
    lines = [
        "🏢 **Company Information:**",
        "",
        f"**Company Name:** {company.name or 'Not Available'}",
        f"**Address:** {company.address or 'Not Available'}",
    ]
    if company.phone:
        lines.append(f"**Phone:** {company.phone}")
    if company.email:
        lines.append(f"**Email:** {company.email}")

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=CompanyResult(company=company),
    )


async def company_address(ctx: HandlerContext, query: str) -> HandlerResult:
    result = await ctx.source.execute_query(ADDRESS_QUERY)
    if not (result.success and result.rows):
        return failure(ctx.stamp.append("Company address not found in Tally database"))

    company = _company(result.rows[0])
    text = (
        "📍 **Company Address:**\n\n"
        f"**{company.name or 'Company Name Not Available'}**\n"
        f"{company.address or 'Address not available in Tally database'}"
    )
    return HandlerResult(
        success=True,
        text=ctx.stamp.append(text),
        data=CompanyResult(company=company, requested_field="address"),
    )
