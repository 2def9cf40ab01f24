"""
Website code generation through an OpenAI-compatible chat completion API
(v0 by default)
"""

import os
from typing import Any, Dict

from openai import APIError, AuthenticationError, OpenAI, PermissionDeniedError

from sitecraft.logging_config import get_logger

logger = get_logger(__name__)

# Configuration
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
GENERATOR_BASE_URL = os.getenv('GENERATOR_BASE_URL', 'https://api.v0.dev/v1')
V0_MODEL = os.getenv('V0_MODEL', 'v0-1.5-lg')
GENERATOR_MAX_TOKENS = int(os.getenv('GENERATOR_MAX_TOKENS', '32768'))
GENERATOR_TEMPERATURE = 0.7

# Prompts longer than this are treated as detailed briefs and kept intact
DETAILED_PROMPT_LENGTH = 800

INVALID_KEY_MESSAGE = (
    'Invalid v0 API key. Please check that OPENAI_API_KEY contains a valid v0 API key from https://v0.app'
)
PLAN_REQUIRED_MESSAGE = (
    'The v0 API requires a Premium or Team plan. The API key is valid, but the account needs to be '
    'upgraded at https://v0.app/chat/settings/billing'
)

SYSTEM_PROMPT = """You are v0, an expert AI specialized in generating PRODUCTION-READY React websites with Vite. Generate a component-based architecture following React and Vite best practices.

CRITICAL: You MUST return ONLY a valid JSON object. No explanations, no markdown, no code blocks, just pure JSON starting with { and ending with }.

Required JSON structure:
{
  "components": [
    {
      "name": "Header",
      "type": "component",
      "path": "src/components/Header.jsx",
      "code": "import React from 'react';\\n\\nexport default function Header() {\\n  return (\\n    <header className=\\"header\\">\\n      <div className=\\"header__logo\\">Company</div>\\n    </header>\\n  );\\n}",
      "language": "jsx"
    }
  ],
  "viteConfig": {
    "packageJson": "{ \\"name\\": \\"website-name\\", \\"version\\": \\"1.0.0\\", \\"scripts\\": { \\"dev\\": \\"vite\\", \\"build\\": \\"vite build\\" }, \\"dependencies\\": { \\"react\\": \\"^18.2.0\\", \\"react-dom\\": \\"^18.2.0\\" }, \\"devDependencies\\": { \\"vite\\": \\"^5.0.0\\", \\"@vitejs/plugin-react\\": \\"^4.2.0\\" } }",
    "viteConfig": "import { defineConfig } from 'vite';\\nimport react from '@vitejs/plugin-react';\\n\\nexport default defineConfig({\\n  plugins: [react()],\\n});",
    "indexHtml": "<!DOCTYPE html>\\n<html lang=\\"en\\">\\n<head>\\n  <meta charset=\\"UTF-8\\">\\n  <title>Website Name</title>\\n</head>\\n<body>\\n  <div id=\\"root\\"></div>\\n  <script type=\\"module\\" src=\\"/src/main.jsx\\"></script>\\n</body>\\n</html>",
    "mainJsx": "import React from 'react';\\nimport ReactDOM from 'react-dom/client';\\nimport './style.css';\\nimport Header from './components/Header.jsx';\\n\\nfunction App() {\\n  return (\\n    <>\\n      <Header />\\n    </>\\n  );\\n}\\n\\nReactDOM.createRoot(document.getElementById('root')).render(<App />);",
    "styleCss": "/* CSS styles */"
  }
}

The mainJsx MUST:
1. Import React and ReactDOM from 'react' and 'react-dom/client'
2. Import './style.css'
3. Import ALL components from './components/ComponentName.jsx'
4. Define an App function component that returns all components wrapped in <>...</>
5. Call ReactDOM.createRoot(document.getElementById('root')).render(<App />)

COMPONENT REQUIREMENTS:
- Break the UI into logical components (Header, Hero, Services, About, Contact, Footer, etc.), one per file in src/components/
- Every component is a complete React functional component using JSX: export default function Name() { return (...); }
- NEVER declare component names as placeholder arrays or objects such as "const Header = [];"
- Use className (not class), semantic HTML5 elements, props for customization and hooks (useState, useEffect) for interactivity
- NO document.createElement, NO innerHTML, NO manual DOM manipulation, NO jsx() helper
- In JSX text, write prices as {'$' + price}, never ${price}

STYLING AND DESIGN:
- CSS classes with BEM-like naming, CSS variables in :root, mobile-first responsive design
- Rich color schemes, gradients, shadows, rounded corners, @keyframes and transitions on interactive elements
- Google Fonts imported from style.css, hover/active/focus states on every button and link
- Images from https://picsum.photos/WIDTH/HEIGHT, never imgur

RETURN FORMAT:
- ONLY the raw JSON object with the components array and the viteConfig object
- All code strings properly escaped as JSON strings with \\n for newlines"""

SHOP_REQUIREMENTS = """FUNCTIONALITY:
- Complete product/service showcase with interactive elements
- Shopping cart (add, remove, update quantities, localStorage persistence)
- Product filtering and search
- Image galleries with modal views
- Contact form with full validation
- Smooth scrolling navigation with active section highlighting
- Testimonials section and newsletter signup with validation

DESIGN:
- Impressive hero section with compelling headline and call-to-action buttons
- Product cards with layered shadows, gradient overlays and hover animations
- Warm palette for food and bakery, cool palette for tech
- CSS Grid product grids, Flexbox components, responsive on all devices
- Styled footer with social links and contact info

"""

CALCULATOR_REQUIREMENTS = """FUNCTIONALITY:
- All basic operations (+, -, ×, ÷) with decimal and negative numbers
- Clear and backspace buttons, keyboard support
- Division by zero and other edge cases handled
- Calculation history or previous result

DESIGN:
- Sleek calculator interface with a large, readable display
- Buttons with hover and active states, responsive grid layout
- Smooth transitions and micro-interactions

"""

TODO_REQUIREMENTS = """FUNCTIONALITY:
- Add, edit, delete and complete tasks, persisted in localStorage
- Filter tasks (all, active, completed) and clear completed
- Priority levels or categories, search

DESIGN:
- Card-based task list with shadows and hover effects
- Animations for adding and removing tasks, color-coded priorities
- Helpful empty state, responsive layout

"""

GENERIC_REQUIREMENTS = """FUNCTIONALITY:
- All features fully implemented and working, no placeholders
- Immediate visual feedback, input validation, error handling
- Modals, dropdowns and tabs where appropriate, localStorage where needed

DESIGN:
- Modern, professional design with rich colors, gradients and depth
- Hero section with compelling visuals, styled navigation
- Hover effects on all buttons and links, responsive on all devices

"""

UNIVERSAL_REQUIREMENTS = """CRITICAL PRODUCTION-READY REQUIREMENTS:
- Production-ready Vite + React project with component-based architecture
- Each component as a separate .jsx module in src/components/
- index.html loads /src/main.jsx, styles live in src/style.css
- Extensive, polished CSS: gradients, shadows, animations, modern layouts
- Every feature complete and working, responsive on mobile, tablet and desktop
- Return JSON with the components array and the viteConfig object"""

DETAILED_PROMPT_TEMPLATE = """Create a complete, production-ready Vite + React project with component-based architecture. Implement EVERYTHING described below:

{prompt}

CRITICAL IMPLEMENTATION REQUIREMENTS:
- Break the UI into logical, reusable components, one .jsx file each in src/components/
- Implement ALL features, pages and design elements described above
- Extensive CSS styling with animations, transitions and responsive layouts
- Interactive hover effects on all buttons, links and cards
- Proper form validation and error handling
- Return the component-based JSON structure with the components array and the viteConfig object"""

_client = None


def get_client():
    """Get or create the OpenAI-compatible client"""
    global _client
    if _client is None:
        if not OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY environment variable not set")
        _client = OpenAI(api_key=OPENAI_API_KEY, base_url=GENERATOR_BASE_URL)
    return _client


def enhance_user_prompt(prompt: str) -> str:
    """
    Add design and functionality requirements to a user prompt.

    Detailed prompts are kept intact and wrapped with implementation
    requirements; short prompts get a requirement block picked by topic.
    """
    if len(prompt) > DETAILED_PROMPT_LENGTH:
        return DETAILED_PROMPT_TEMPLATE.format(prompt=prompt)

    lowered = prompt.lower()
    enhanced = f"Create a {prompt} as a Vite project with component-based architecture. Break down the UI into reusable components:\n\n"

    if any(word in lowered for word in ('shop', 'store', 'business', 'cake', 'bakery')):
        enhanced += SHOP_REQUIREMENTS
    elif 'calculator' in lowered or 'calc' in lowered:
        enhanced += CALCULATOR_REQUIREMENTS
    elif 'todo' in lowered or 'task' in lowered:
        enhanced += TODO_REQUIREMENTS
    else:
        enhanced += GENERIC_REQUIREMENTS

    return enhanced + UNIVERSAL_REQUIREMENTS


def _error_message(error: Exception) -> str:
    if isinstance(error, AuthenticationError):
        return INVALID_KEY_MESSAGE
    if isinstance(error, PermissionDeniedError):
        return PLAN_REQUIRED_MESSAGE
    message = str(error)
    if '401' in message or 'Incorrect API key' in message:
        return INVALID_KEY_MESSAGE
    if '403' in message or 'Premium or Team plan' in message:
        return PLAN_REQUIRED_MESSAGE
    return message


def generate_website_code(prompt: str, model: str = None) -> Dict[str, Any]:
    """
    Ask the generation model for a website.

    Args:
        prompt: The user's website description
        model: Model identifier (defaults to V0_MODEL)

    Returns:
        {
            'success': bool,
            'response_text': str (raw model output),
            'model': str,
            'error': str (if failed)
        }
    """
    model = model or V0_MODEL
    user_prompt = enhance_user_prompt(prompt)

    logger.info(f"   Calling {model} (prompt {len(prompt)} chars, enhanced {len(user_prompt)} chars)...")

    try:
        client = get_client()
        completion = client.chat.completions.create(
            model=model,
            messages=[
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user', 'content': user_prompt},
            ],
            temperature=GENERATOR_TEMPERATURE,
            max_tokens=GENERATOR_MAX_TOKENS,
        )

        response_text = ''
        if completion.choices:
            response_text = completion.choices[0].message.content or ''
        if not response_text:
            response_text = '{}'

        logger.info(f"   ✅ Received {len(response_text)} chars from {model}")
        logger.debug(f"   Response tail: {response_text[-150:]}")

        return {
            'success': True,
            'response_text': response_text,
            'model': model,
        }

    except (APIError, ValueError) as e:
        message = _error_message(e)
        logger.error(f"   ❌ Generation failed: {message}")
        return {
            'success': False,
            'model': model,
            'error': message,
        }
