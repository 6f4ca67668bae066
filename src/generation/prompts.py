"""Prompt templates for landing page generation and edits."""

from __future__ import annotations

from datetime import date

from src.api.schemas import RGB, ExtractedAssetSet

SYSTEM_PROMPT = """\
You are an expert web developer and designer. You can accept and analyze \
images and screenshots. Your task is to analyze a screenshot of a brand \
website with a fresh perspective while maintaining brand consistency. Focus \
on recreating the layout, spacing, and visual hierarchy while using Lorem \
Ipsum text."""

EDIT_SYSTEM_PROMPT = """\
You are an expert web developer and designer. Your task is to edit the \
provided HTML to fulfill the user instructions precisely."""

GENERATION_PROMPT = """\
Create a high-converting, single-page landing page that captures the essence \
and branding of the screenshot referenced website. Focus primarily on \
replicating the design elements provided in the attached screenshot and \
adhering to the specified color palette using backgrounds, border-radius, etc. \
seen in the screenshot. Use the supplementary style information below as \
additional guidance, but if those details are missing or incomplete, rely on \
the screenshot's design and provided color palette.
{screenshot_section}{palette_section}{style_section}{selection_section}
Requirements:
1. Create a modern, responsive, and semantic HTML5 layout.
2. The navigation bar should be white background or match the screenshot.
3. Ensure accessibility compliance.
4. Ensure there are 4 defined sections outside of the header navigation bar: hero, content, content-2, footer.
5. Section background colors, widths, max-width, and margins should match the screenshot.
6. Hero section should include an image provided in Visual Assets.
7. Use Lorem Ipsum for all text content unless otherwise specified, at least 2 paragraphs.
8. Do not include any navigation or extraneous links in the header except the logo.
9. Button styles and colors should match the screenshot.
10. Place the logo in the top left corner of the page unless otherwise specified or if the screenshot shows a different location.
11. Use Google fonts in the head element for any provided fonts that require it.
12. Update any years to the current year ({year}).

Additional Content Requirements:
{prompt}

Respond ONLY with the complete HTML code including embedded CSS. Do not \
include any explanations or markdown."""

SCREENSHOT_SECTION = """
Screenshot Reference (HIGHEST PRIORITY):
Please carefully review the attached screenshot for its layout, colors, buttons, and border radius.
Screenshot URL: {screenshot}
"""

EDIT_PROMPT = """\
Below is the current HTML of your landing page:
{current_html}

The user has requested the following modifications:
{instructions}
{screenshot_line}
Extra pointers:
- Maintain layout, spacing, and overall structure.
- Use the same color scheme and fonts as in the current design unless otherwise specified.
- Preserve any embedded CSS unless explicit modifications are requested.

Respond ONLY with the complete updated HTML code including embedded CSS. Do \
not include any explanations or markdown."""


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def format_style_guide(style: ExtractedAssetSet | None) -> str:
    """Typography, logo and image inventory; empty when there is no style."""
    if style is None:
        return ""
    parts = ["Style Guide:"]
    if style.fonts:
        parts.append(f"Typography (use exactly):\n{_bullets(style.fonts)}")
    else:
        parts.append("Use system fonts")
    if style.logo:
        parts.append(f"Brand Logo: {style.logo}")
    if style.images:
        parts.append(f"Visual Assets:\n{_bullets(style.images)}")
    return "\n\n".join(parts)


def format_palette(
    style: ExtractedAssetSet | None,
    palette: list[RGB] | None = None,
) -> str:
    """Color palette block. A screenshot palette wins over scraped colors."""
    if palette:
        colors = [f"rgb({', '.join(str(c) for c in color)})" for color in palette]
    elif style is not None and style.colors:
        colors = list(style.colors)
    else:
        return ""
    return f"\nColor Palette:\n{_bullets(colors)}\n"


def format_selection(style: ExtractedAssetSet | None) -> str:
    if style is None or not (style.dominant_color or style.primary_font):
        return ""
    lines = []
    if style.dominant_color:
        lines.append(f"Dominant Color: {style.dominant_color}")
    if style.primary_font:
        lines.append(f"Primary Font: {style.primary_font}")
    return f"\nUser Selected Design Criteria:\n{_bullets(lines)}\n"


def format_generation_prompt(
    prompt: str,
    style: ExtractedAssetSet | None = None,
    screenshot: str | None = None,
    palette: list[RGB] | None = None,
    today: date | None = None,
) -> str:
    """Build the user message for a full generation.

    *palette* defaults to the palette stored on *style*.
    """
    today = today or date.today()
    if palette is None and style is not None:
        palette = style.palette

    style_guide = format_style_guide(style)
    style_section = f"\nOptional Supplementary Style Guide:\n{style_guide}\n" if style_guide else ""

    return GENERATION_PROMPT.format(
        screenshot_section=SCREENSHOT_SECTION.format(screenshot=screenshot) if screenshot else "",
        palette_section=format_palette(style, palette),
        style_section=style_section,
        selection_section=format_selection(style),
        year=today.year,
        prompt=prompt,
    )


def format_edit_prompt(
    current_html: str,
    instructions: str,
    screenshot: str | None = None,
) -> str:
    return EDIT_PROMPT.format(
        current_html=current_html,
        instructions=instructions,
        screenshot_line=f"\nScreenshot URL: {screenshot}\n" if screenshot else "",
    )
