"""Static landing page served when generation gives up."""

from __future__ import annotations

from html import escape

from src.api.schemas import ExtractedAssetSet

DEFAULT_PRIMARY_COLOR = "#4F46E5"
DEFAULT_TEXT_COLOR = "#1F2937"
DEFAULT_BACKGROUND_COLOR = "#F9FAFB"
DEFAULT_FONT_STACK = "system-ui, -apple-system, sans-serif"
DEFAULT_DESCRIPTION = "Welcome to our website"

PAGE_TEMPLATE = """\
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="{description}">
    <title>Welcome</title>
    <style>
        :root {{
            --primary: {primary_color};
            --text: {text_color};
            --bg: {background_color};
        }}

        * {{
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }}

        body {{
            font-family: {font_family};
            color: var(--text);
            background: var(--bg);
            line-height: 1.5;
        }}

        .container {{
            max-width: 1200px;
            margin: 0 auto;
            padding: 2rem;
        }}

        .hero {{
            min-height: 80vh;
            display: flex;
            align-items: center;
            text-align: center;
            background: linear-gradient(rgba(0,0,0,0.5), rgba(0,0,0,0.5)), url('{hero_image}') center/cover;
            color: white;
        }}

        h1 {{
            font-size: 3rem;
            margin-bottom: 1.5rem;
        }}

        p {{
            font-size: 1.25rem;
            margin-bottom: 2rem;
            max-width: 600px;
            margin-left: auto;
            margin-right: auto;
        }}

        .button {{
            display: inline-block;
            background: var(--primary);
            color: white;
            padding: 1rem 2rem;
            border-radius: 0.5rem;
            text-decoration: none;
            transition: transform 0.2s;
        }}

        .button:hover {{
            transform: translateY(-2px);
        }}

        .features {{
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(300px, 1fr));
            gap: 2rem;
            padding: 4rem 0;
        }}

        .feature {{
            text-align: center;
        }}

        .feature img {{
            width: 100%;
            max-width: 300px;
            height: 200px;
            object-fit: cover;
            border-radius: 0.5rem;
            margin-bottom: 1.5rem;
        }}

        @media (max-width: 768px) {{
            h1 {{
                font-size: 2rem;
            }}

            .features {{
                grid-template-columns: 1fr;
            }}
        }}
    </style>
</head>
<body>
    <header>
        {logo}
    </header>

    <main>
        <section class="hero">
            <div class="container">
                <h1>Welcome to Our Website</h1>
                <p>Lorem ipsum dolor sit amet, consectetur adipiscing elit. Sed do eiusmod tempor incididunt ut labore et dolore magna aliqua.</p>
                <a href="#" class="button">Get Started</a>
            </div>
        </section>

        <section class="container">
            <div class="features">{features}
            </div>
        </section>
    </main>
</body>
</html>"""

LOGO_TEMPLATE = '<img src="{src}" alt="Logo" style="max-width: 200px; margin: 1rem;">'

FEATURE_TEMPLATE = """
                <div class="feature">
                    <img src="{src}" alt="Feature {number}">
                    <h2>Feature {number}</h2>
                    <p>Lorem ipsum dolor sit amet, consectetur adipiscing elit.</p>
                </div>"""


_CSS_UNSAFE = str.maketrans("", "", "<>{};\\")


def _css_value(value: str) -> str:
    return value.translate(_CSS_UNSAFE)


def _css_url(url: str) -> str:
    return _css_value(url).replace("'", "%27").replace("(", "%28").replace(")", "%29")


def _css_font(font: str) -> str:
    if "," in font or " " not in font:
        return font
    return f"'{font}', sans-serif"


def default_template(style: ExtractedAssetSet | None = None) -> str:
    """Render the fallback page from whatever *style* offers."""
    style = style or ExtractedAssetSet()

    font = style.primary_font or (style.fonts[0] if style.fonts else None)
    images = style.images
    features = "".join(
        FEATURE_TEMPLATE.format(src=escape(src), number=number)
        for number, src in enumerate(images[1:], start=1)
    )

    return PAGE_TEMPLATE.format(
        description=escape(style.meta_description or DEFAULT_DESCRIPTION),
        primary_color=_css_value(style.dominant_color or DEFAULT_PRIMARY_COLOR),
        text_color=DEFAULT_TEXT_COLOR,
        background_color=DEFAULT_BACKGROUND_COLOR,
        font_family=_css_value(_css_font(font)) if font else DEFAULT_FONT_STACK,
        hero_image=_css_url(images[0]) if images else "",
        logo=LOGO_TEMPLATE.format(src=escape(style.logo)) if style.logo else "",
        features=features,
    )
