"""Instruction templates for website generation.

Three templates share one output contract (JSON with html/css/js):
- SKETCH_PROMPT: first generation from a wireframe image
- REGENERATE_PROMPT: new wireframe image plus the current site
- EDIT_PROMPT: text-only change request against the current site

Templates are filled with str.format; literal braces are doubled.
"""

from sketchsite.schemas.artifacts import StylePreset

# Rules applied when generating from a sketch
STYLE_RULES: dict[StylePreset, str] = {
    StylePreset.MODERN: (
        "Clean lines, subtle shadows, professional look. Use modern typography, "
        "soft rounded corners, and refined spacing."
    ),
    StylePreset.MINIMALIST: (
        "Simple and clean with lots of whitespace. Only essential elements, "
        "no decorative elements. Light and airy feel."
    ),
    StylePreset.RETRO: (
        "80s/90s vibes with vintage colors (warm oranges, teals, purples). "
        "Pixelated borders, old-school fonts, nostalgic feel."
    ),
    StylePreset.PLAYFUL: (
        "Friendly and fun. Rounded shapes, bouncy hover effects, bright "
        "complementary colors, and a casual tone in placeholder copy."
    ),
    StylePreset.PROFESSIONAL: (
        "Corporate and trustworthy. Restrained palette, strong grid alignment, "
        "serif or neutral sans-serif headings, and clear calls to action."
    ),
    StylePreset.BRUTALIST: (
        "Raw and unconventional. Bold typography, stark contrasts, asymmetric "
        "layouts, thick borders, no rounded corners."
    ),
    StylePreset.GLASSMORPHISM: (
        "Frosted glass effects with backdrop-blur, semi-transparent backgrounds, "
        "subtle borders, and modern layered depth."
    ),
    StylePreset.DYNAMIC: (
        "Bold and eye-catching. Use gradients, animations (CSS transitions), "
        "vibrant colors, and strong visual hierarchy."
    ),
}

# Shorter rules used when editing an existing site
STYLE_EDITING_RULES: dict[StylePreset, str] = {
    StylePreset.MODERN: "Keep clean lines, subtle shadows, generous whitespace. Use smooth transitions (0.3s ease).",
    StylePreset.MINIMALIST: "Maximize whitespace, use minimal colors. No gradients or animations. Keep it ultra-clean.",
    StylePreset.RETRO: "Use sharp corners, offset shadows, monospace fonts. Think 80s/90s computing aesthetic.",
    StylePreset.PLAYFUL: "Use rounded corners, bouncy animations, bright colors. Keep it light and energetic.",
    StylePreset.PROFESSIONAL: "Keep a restrained palette, consistent grid, and understated hover states.",
    StylePreset.BRUTALIST: "Sharp corners, bold borders, high contrast. Raw, typography-heavy aesthetic.",
    StylePreset.GLASSMORPHISM: "Use backdrop-filter blur effects, semi-transparent backgrounds, subtle borders.",
    StylePreset.DYNAMIC: "Use gradients, lively transitions, vibrant colors. Keep a strong visual hierarchy.",
}

OUTPUT_CONTRACT = """## OUTPUT FORMAT (JSON only, no markdown):
{{
  "html": "BODY CONTENT ONLY - no DOCTYPE, html, head, or body tags. Just the inner content.",
  "css": "The COMPLETE stylesheet for the page",
  "js": "Any JavaScript if needed, otherwise an empty string"{extra_fields}
}}

IMPORTANT:
- The "html" field must contain ONLY the body content (divs, sections, etc.) - NOT a full HTML document
- The "css" field must ALWAYS contain the full stylesheet, never a partial diff and never empty
- Escape all strings so the whole reply is one valid JSON object
"""

ANALYSIS_FIELDS = """,
  "analysis": {
    "annotations": ["red annotation texts you found and how you interpreted them"],
    "layout": "brief description of the layout structure",
    "elements": ["elements you created, e.g. 'navbar', 'hero image', 'feature cards'"]
  }"""

CHANGES_FIELDS = ''',
  "changes": "Brief description of what was changed"'''

DESIGN_SYSTEM = """## STYLING (USER SELECTED)
Style: {preset}
{style_rules}

Colors to use:
- Background color: {background_color}
- Accent/Primary color: {accent_color}
- Text: use appropriate contrasting colors based on the background

Apply these colors consistently throughout the design.
"""

SKETCH_PROMPT = """You are a SMART WIREFRAME INTERPRETER. Your job is to understand the user's intent from their wireframe drawing (attached image) and create a polished website that matches their vision.

# HOW TO INTERPRET THE WIREFRAME

## 1. RED TEXT = ANNOTATIONS (context, NOT literal text)
- Red/reddish text is the user DESCRIBING what something should be
- A rectangle with red text "image of cat" means an <img> of a cat
- DO NOT put red annotation text on the actual website

## 2. NON-RED TEXT = ACTUAL CONTENT
- Black, blue, or other colored text should appear on the website as written

## 3. SHAPE INTERPRETATION
- Rectangle/Box = image placeholder by default (use https://picsum.photos/WIDTH/HEIGHT)
- Box with "button" written inside = a styled <button>
- Box near the top or labelled "nav" = navigation bar
- Circle = avatar, icon, or rounded element
- Horizontal lines/scribbles = text paragraphs
- Several small boxes in a row = card grid, gallery, or feature list

## 4. FOLLOW THE LAYOUT
- Respect position, relative size and grouping of elements
- If 3 boxes are drawn, create 3 elements (not more, not less)

{design_system}
{output_contract}"""

REGENERATE_PROMPT = """You are a SMART WIREFRAME INTERPRETER updating an existing website. The attached image is the user's revised wireframe. Update the current website so it matches the revised drawing, keeping everything that the drawing did not change.

## CURRENT WEBSITE CODE
### html
{current_markup}

### css
{current_styles}

### js
{current_script}

Red text in the drawing is an annotation (intent), other text is literal content.

{design_system}
Return the COMPLETE updated site. Even when only a few rules change, the "css" field must contain every rule the page needs, not just the changed ones.

{output_contract}"""

EDIT_PROMPT = """You are an EXPERT WEBSITE EDITOR. The user has a generated website and wants to make changes via natural language.

## CURRENT WEBSITE CODE
### html
{current_markup}

### css
{current_styles}

### js
{current_script}

{design_system}
Style guidelines: {editing_rules}

## USER'S EDIT REQUEST
"{message}"

## EDITING RULES
1. Preserve the design system: all changes must match the "{preset}" aesthetic
2. Only use {background_color}, {accent_color}, and their variations
3. Only modify what the user explicitly requests; keep the existing layout otherwise
4. Keep the page responsive and accessible
5. Return the COMPLETE updated stylesheet in "css", not only the changed rules

{output_contract}"""
