import logging
import os
from typing import Dict, List, Optional

from dotenv import load_dotenv
from openai import OpenAI

from dbase.driver import DbaseDriver

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"
HISTORY_LIMIT = 10

FALLBACK_CONTEXT = (
    "You are a helpful assistant for Codivra, a technology solutions company. "
    "Answer questions about services, blog posts, portfolio, team, and contact information."
)

COMPANY_INFORMATION = """\
COMPANY INFORMATION:
- Email: codivrasolutions@gmail.com
- Phone: +91 9452819739
- Address: 813, Vikas Nagar Colony, Khoobpur, Sitapur
- Contact Form: Available at /contact
- Inquiry Form: Available at /inquiry

INSTRUCTIONS:
- Be friendly, professional, and helpful
- Answer questions based on the information provided above
- If you don't know something, direct users to the appropriate page or contact information
- Keep responses concise but informative
"""


def is_chatbot_configured() -> bool:
    return bool(os.getenv("GROQ_API_KEY"))


def _numbered(title: str, lines: List[str]) -> str:
    if not lines:
        return ""
    items = "\n".join(f"{idx}. {line}" for idx, line in enumerate(lines, start=1))
    return f"{title}:\n{items}\n\n"


def build_context() -> str:
    """System prompt assembled from the site content collections."""
    try:
        db = DbaseDriver()
        services = list(db.get_collection("services").find({}).sort("created_at", -1))
        blog = list(db.get_collection("blog_posts").find({}).sort("created_at", -1).limit(10))
        portfolio = list(db.get_collection("portfolio_items").find({}).sort("created_at", -1).limit(10))
        team = list(db.get_collection("team_members").find({}))
    except Exception:
        logger.exception("Failed to load chatbot context, using fallback prompt")
        return FALLBACK_CONTEXT

    context = (
        "You are a helpful assistant for Codivra, a technology solutions company. "
        "Answer questions based on the following information about the company:\n\n"
    )
    context += _numbered(
        "SERVICES",
        [f"{s.get('title', '')}" + (f" - {s['description']}" if s.get("description") else "") for s in services],
    )
    context += _numbered(
        "BLOG POSTS",
        [
            f"{p.get('title', '')}"
            + (f" ({p['category']})" if p.get("category") else "")
            + (f" - {p['content'][:200]}..." if p.get("content") else "")
            for p in blog
        ],
    )
    context += _numbered(
        "PORTFOLIO PROJECTS",
        [
            f"{p.get('title', '')}"
            + (f" ({p['category']})" if p.get("category") else "")
            + (f" - {p['description']}" if p.get("description") else "")
            for p in portfolio
        ],
    )
    context += _numbered(
        "TEAM MEMBERS",
        [f"{m.get('name', '')} - {m.get('role', '')}" + (f" - {m['bio']}" if m.get("bio") else "") for m in team],
    )
    return context + COMPANY_INFORMATION


class ChatAPI:
    """Chat completions against an OpenAI-compatible endpoint (Groq by default)."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, base_url: Optional[str] = None):
        api_key = api_key or os.getenv("GROQ_API_KEY")
        if not api_key:
            raise ValueError("GROQ_API_KEY is not set. Add it to your environment or pass api_key explicitly.")

        self.client = OpenAI(api_key=api_key, base_url=base_url or os.getenv("CHATBOT_BASE_URL", DEFAULT_BASE_URL))
        self.model = model or os.getenv("CHATBOT_MODEL", DEFAULT_MODEL)

    @staticmethod
    def build_messages(system_prompt: str, history: List[Dict[str, str]], message: str) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": system_prompt}]
        for item in history[-HISTORY_LIMIT:]:
            role = "user" if item.get("sender") == "user" else "assistant"
            messages.append({"role": role, "content": item.get("text", "")})
        messages.append({"role": "user", "content": message})
        return messages

    def reply(self, message: str, history: List[Dict[str, str]]) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=self.build_messages(build_context(), history, message),
            temperature=0.7,
            max_tokens=1024,
            top_p=1,
        )
        content = response.choices[0].message.content if response.choices else None
        return (content or "I apologize, but I couldn't generate a response. Please try again.").strip()
