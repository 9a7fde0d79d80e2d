"""
Tests for the website chatbot
"""
from unittest.mock import MagicMock

import pytest

from analytics.models import AnalyticsEvent
from services.chatbot import DEFAULT_SUGGESTIONS, ChatbotService, classify_intent
from services.storage import Page
from tests.factories import make_project


class TestIntentClassification:
    """Test keyword intent matching"""

    @pytest.mark.parametrize('message,intent', [
        ('Hi there', 'greeting'),
        ('What is the price per sq ft?', 'pricing'),
        ('Where is the land located?', 'location'),
        ('What ROI can I expect?', 'returns'),
        ('Can I book a site visit this weekend?', 'visit'),
        ('Is the title clear?', 'legal'),
        ('How do I contact your team?', 'contact'),
        ('Tell me about your coconut farms', 'projects'),
        ('asdf qwerty', 'fallback'),
    ])
    def test_classify(self, message, intent):
        assert classify_intent(message) == intent

    def test_keywords_match_whole_words(self):
        # "this" must not trigger the "hi" greeting
        assert classify_intent('this is interesting') == 'fallback'


class TestChatbotService:
    """Test answers built from project data"""

    def _service(self, projects):
        storage = MagicMock()
        storage.get_projects.return_value = Page(items=projects, total=len(projects), limit=50, offset=0)
        return ChatbotService(storage=storage)

    def _project(self, **values):
        project = MagicMock()
        project.configure_mock(**{
            'name': 'Ghat Coco Idyll',
            'slug': 'ghat-coco-idyll',
            'project_type': 'coconut',
            'location': 'Palakkad',
            'district': 'Palakkad',
            'state': 'Kerala',
            'description': 'Coconut farmland.',
            'price_per_sq_ft': 199,
            'min_investment': 1500000,
            'expected_returns': [{'year': 5, 'percentage': 12}],
            'legal_status': 'clear',
            **values,
        })
        return project

    def test_pricing_for_named_project(self):
        reply = self._service([self._project()]).respond('What is the price at Ghat Coco Idyll?')
        assert '₹199' in reply['response']
        assert '₹1,500,000' in reply['response']

    def test_pricing_range(self):
        projects = [
            self._project(),
            self._project(name='Backwater Bliss', slug='backwater-bliss', project_type='backwater',
                          price_per_sq_ft=299),
        ]
        reply = self._service(projects).respond('What does it cost?')
        assert '₹199' in reply['response'] and '₹299' in reply['response']

    def test_returns_projection(self):
        reply = self._service([self._project()]).respond('What returns can I expect?')
        assert '12% by year 5' in reply['response']

    def test_location(self):
        reply = self._service([self._project()]).respond('Where is Ghat Coco Idyll located?')
        assert 'Palakkad' in reply['response']

    def test_no_projects(self):
        reply = self._service([]).respond('What is the price?')
        assert reply['response']
        assert reply['suggestions'] == DEFAULT_SUGGESTIONS

    def test_fallback_offers_suggestions(self):
        reply = self._service([]).respond('asdf')
        assert reply['suggestions'] == DEFAULT_SUGGESTIONS


@pytest.mark.django_db
class TestChatbotAPI:
    """Test POST /api/chatbot"""

    def test_chat(self, client):
        make_project(name='Ghat Coco Idyll', slug='ghat-coco-idyll', price_per_sq_ft='199.00')

        response = client.post('/api/chatbot', {'message': 'What is the price at Ghat Coco Idyll?'},
                               content_type='application/json')

        assert response.status_code == 200
        body = response.json()
        assert '₹199' in body['response']
        assert isinstance(body['suggestions'], list)
        assert AnalyticsEvent.objects.filter(event=AnalyticsEvent.EVENT_CHATBOT_MESSAGE).count() == 1

    def test_empty_message_rejected(self, client):
        response = client.post('/api/chatbot', {'message': ''}, content_type='application/json')
        assert response.status_code == 400
