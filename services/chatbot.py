"""
Rule-based assistant behind the website chat widget.

Messages are matched against keyword intents and answered from live project
data, so prices and locations quoted to visitors always match the listings.
"""
import logging
import re
from typing import Dict, Optional

from django.conf import settings

from projects.schemas import ProjectFilterSchema
from services.storage import get_storage

logger = logging.getLogger(__name__)

# Checked in order; the first intent with a matching keyword wins
INTENT_KEYWORDS = [
    ("greeting", ["hello", "hi", "hey", "namaste", "good morning", "good evening"]),
    ("visit", ["visit", "visits", "site visit", "tour", "see the land", "schedule", "book"]),
    ("pricing", [
        "price", "prices", "pricing", "cost", "costs", "rate", "sq ft", "sqft",
        "budget", "investment", "cheap", "expensive",
    ]),
    ("returns", ["return", "returns", "roi", "yield", "profit", "income", "appreciation"]),
    ("legal", ["legal", "title", "document", "documents", "registration", "patta", "ownership", "clear title"]),
    ("location", ["where", "location", "located", "district", "kerala", "near", "distance", "how far"]),
    ("contact", ["contact", "call", "phone", "email", "whatsapp", "talk to", "speak"]),
    ("projects", [
        "project", "projects", "farm", "farms", "land", "plot", "plots",
        "coconut", "spice", "backwater", "hill",
    ]),
]

DEFAULT_SUGGESTIONS = [
    "What projects do you have?",
    "What is the price per sq ft?",
    "What returns can I expect?",
    "How do I book a site visit?",
]


def _tokens(message: str) -> str:
    return " " + re.sub(r"[^a-z0-9 ]+", " ", message.lower()) + " "


def classify_intent(message: str) -> str:
    """Return the first intent whose keywords appear in ``message``"""
    text = _tokens(message)
    for intent, keywords in INTENT_KEYWORDS:
        for keyword in keywords:
            if f" {keyword} " in text:
                return intent
    return "fallback"


def _format_price(value) -> str:
    return f"₹{value:,.0f}"


class ChatbotService:
    """Answers visitor questions using the active project catalogue"""

    def __init__(self, storage=None):
        self._storage = storage

    @property
    def storage(self):
        return self._storage if self._storage is not None else get_storage()

    def _projects(self) -> list:
        page = self.storage.get_projects(ProjectFilterSchema(limit=settings.PROJECTS_MAX_PAGE_SIZE))
        return page.items

    def _matching_project(self, message: str, projects: list):
        text = message.lower()
        for project in projects:
            if project.name.lower() in text or project.slug.replace("-", " ") in text:
                return project
        for project in projects:
            if project.project_type.replace("-", " ") in text:
                return project
        return None

    def respond(self, message: str, language: str = "en") -> Dict[str, object]:
        intent = classify_intent(message)
        logger.info(f"Chatbot message classified as {intent} (language={language})")
        handler = getattr(self, f"_answer_{intent}")
        response, suggestions = handler(message)
        return {"response": response, "suggestions": suggestions or DEFAULT_SUGGESTIONS}

    def _answer_greeting(self, message: str):
        return (
            "Hello! I can help you explore our managed farmland projects in Kerala. "
            "Ask me about prices, locations, expected returns or booking a site visit.",
            DEFAULT_SUGGESTIONS,
        )

    def _answer_projects(self, message: str):
        projects = self._projects()
        if not projects:
            return "We are preparing new projects right now. Leave your details and we will reach out.", None
        project = self._matching_project(message, projects)
        if project is not None:
            return (
                f"{project.name} is a {project.project_type.replace('-', ' ')} project in {project.location}. "
                f"{project.description}",
                [f"What is the price at {project.name}?", "How do I book a site visit?"],
            )
        names = ", ".join(f"{p.name} ({p.location})" for p in projects[:5])
        return f"Our current projects are: {names}.", [f"Tell me about {p.name}" for p in projects[:3]]

    def _answer_pricing(self, message: str):
        projects = self._projects()
        if not projects:
            return "Pricing will be published with our next project launch.", None
        project = self._matching_project(message, projects)
        if project is not None:
            answer = f"{project.name} is priced at {_format_price(project.price_per_sq_ft)} per sq ft"
            if project.min_investment:
                answer += f", with a minimum investment of {_format_price(project.min_investment)}"
            return answer + ".", ["What returns can I expect?", "How do I book a site visit?"]
        cheapest = min(projects, key=lambda p: p.price_per_sq_ft)
        highest = max(projects, key=lambda p: p.price_per_sq_ft)
        return (
            f"Prices range from {_format_price(cheapest.price_per_sq_ft)} per sq ft at {cheapest.name} "
            f"to {_format_price(highest.price_per_sq_ft)} per sq ft at {highest.name}.",
            [f"What is the price at {p.name}?" for p in projects[:3]],
        )

    def _answer_returns(self, message: str):
        projects = self._projects()
        project = self._matching_project(message, projects)
        candidates = [project] if project is not None else [p for p in projects if p.expected_returns]
        lines = []
        for candidate in candidates[:3]:
            returns = candidate.expected_returns
            if isinstance(returns, list) and returns:
                last = returns[-1]
                lines.append(f"{candidate.name}: about {last['percentage']}% by year {last['year']}")
            elif returns:
                lines.append(f"{candidate.name}: {returns}")
        if not lines:
            return (
                "Returns depend on the crop and the project. Our team can share a detailed projection.",
                ["How do I contact you?"],
            )
        return "Expected returns: " + "; ".join(lines) + ". Returns are projections, not guarantees.", None

    def _answer_location(self, message: str):
        projects = self._projects()
        if not projects:
            return "All our projects are located across Kerala.", None
        project = self._matching_project(message, projects)
        if project is not None:
            place = ", ".join(part for part in (project.location, project.district, project.state) if part)
            return f"{project.name} is located in {place}.", ["How do I book a site visit?"]
        places = sorted({p.location for p in projects})
        return f"Our projects are located in {', '.join(places)}.", None

    def _answer_visit(self, message: str):
        return (
            "We arrange guided site visits every weekend. Share your name and phone number "
            "through the enquiry form and our team will confirm a slot.",
            ["What projects do you have?", "How do I contact you?"],
        )

    def _answer_legal(self, message: str):
        projects = self._projects()
        project = self._matching_project(message, projects)
        if project is not None:
            return (
                f"{project.name} has {project.legal_status} legal status. "
                "Title documents are available for review before purchase.",
                None,
            )
        return (
            "Every plot comes with clear title documents, registered in the buyer's name. "
            "We share the full legal paperwork before any payment.",
            None,
        )

    def _answer_contact(self, message: str):
        return (
            "You can reach our team through the enquiry form on this page and we will call you back "
            "within one working day.",
            ["How do I book a site visit?"],
        )

    def _answer_fallback(self, message: str):
        return (
            "I'm not sure I understood that. I can answer questions about our projects, prices, "
            "locations, expected returns and site visits.",
            DEFAULT_SUGGESTIONS,
        )


_chatbot_instance: Optional[ChatbotService] = None


def get_chatbot() -> ChatbotService:
    """Get or create the chatbot instance (lazy initialization)"""
    global _chatbot_instance
    if _chatbot_instance is None:
        _chatbot_instance = ChatbotService()
    return _chatbot_instance
