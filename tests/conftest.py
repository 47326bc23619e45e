import copy
import itertools
import os
import sys
from unittest.mock import Mock, patch

import pytest
from google.api_core.exceptions import FailedPrecondition, ServiceUnavailable
from google.cloud.firestore_v1.transforms import ArrayUnion

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from educonnect.config import TestingConfig
from educonnect.services.notification_service import NotificationService
from educonnect.services.question_service import QuestionService
from educonnect.services.user_service import UserService
from educonnect.services.vote_service import VoteService


class FakeWriteOption:
    def __init__(self, last_update_time):
        self.last_update_time = last_update_time


class FakeSnapshot:
    """Point-in-time copy of a fake Firestore document"""

    def __init__(self, reference, data, update_time):
        self.reference = reference
        self.id = reference.id
        self._data = copy.deepcopy(data)
        self.exists = data is not None
        self.update_time = update_time if data is not None else None

    def to_dict(self):
        return copy.deepcopy(self._data) if self.exists else None


class FakeDocument:
    def __init__(self, collection, doc_id):
        self.collection = collection
        self.id = doc_id

    def get(self):
        self.collection.db.reads += 1
        data = self.collection.documents.get(self.id)
        return FakeSnapshot(self, data, self.collection.update_times.get(self.id))

    def set(self, data):
        self.collection.check_writable()
        self.collection.store(self.id, copy.deepcopy(data))

    def update(self, data, option=None):
        self.collection.check_writable()
        if self.id not in self.collection.documents:
            raise ServiceUnavailable(f"No document to update: {self.id}")

        if option is not None and option.last_update_time != self.collection.update_times[self.id]:
            raise FailedPrecondition("Document was modified since it was read")

        current = self.collection.documents[self.id]
        for key, value in data.items():
            if isinstance(value, ArrayUnion):
                existing = current.get(key, [])
                current[key] = existing + [v for v in value.values if v not in existing]
            else:
                current[key] = copy.deepcopy(value)
        self.collection.store(self.id, current)


class FakeCollection:
    def __init__(self, db, name):
        self.db = db
        self.name = name
        self.documents = {}
        self.update_times = {}
        self.fail_writes = False
        self._ids = itertools.count(1)

    def document(self, doc_id):
        return FakeDocument(self, doc_id)

    def add(self, data):
        self.check_writable()
        doc_id = f"{self.name}-{next(self._ids)}"
        self.store(doc_id, copy.deepcopy(data))
        return None, FakeDocument(self, doc_id)

    def store(self, doc_id, data):
        self.documents[doc_id] = data
        self.update_times[doc_id] = next(self.db.clock)

    def check_writable(self):
        if self.fail_writes:
            raise ServiceUnavailable(f"Writes to {self.name} are unavailable")


class FakeFirestore:
    """In-memory Firestore with update preconditions and write failures"""

    def __init__(self):
        self.collections = {}
        self.clock = itertools.count(1)
        self.reads = 0

    def collection(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(self, name)
        return self.collections[name]

    def write_option(self, last_update_time=None):
        return FakeWriteOption(last_update_time)

    def seed(self, collection, doc_id, data):
        self.collection(collection).store(doc_id, copy.deepcopy(data))

    def data(self, collection, doc_id):
        return self.collection(collection).documents.get(doc_id)

    def all_docs(self, collection):
        return list(self.collection(collection).documents.values())


@pytest.fixture
def mock_firestore():
    """Mock Firestore database"""
    with patch('firebase_admin.firestore.client') as mock_client:
        mock_db = Mock()
        mock_client.return_value = mock_db
        yield mock_db


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def sample_user_data():
    """Sample user data for testing"""
    return {
        'name': 'Test User',
        'email': 'test@example.com',
        'profilePicture': 'https://example.com/avatar.png',
        'score': 10,
        'level': 1,
    }


@pytest.fixture
def sample_question():
    return {
        'title': 'How do I integrate x^2?',
        'content': 'Stuck on this one',
        'authorId': 'author-1',
        'upvotedBy': [],
        'downvotedBy': [],
        'votes': 0,
        'answers': [
            {
                'id': 'answer-1',
                'authorId': 'helper-1',
                'authorName': 'Helper',
                'content': 'x^3 / 3 + C',
                'votes': 0,
                'votedBy': [],
                'isAccepted': False,
            },
            {
                'id': 'answer-2',
                'authorId': 'helper-2',
                'authorName': 'Other Helper',
                'content': 'Use the power rule',
                'votes': 1,
                'votedBy': ['someone'],
                'isAccepted': False,
            },
        ],
    }


@pytest.fixture
def seeded_db(fake_db, sample_user_data, sample_question):
    fake_db.seed('users', 'author-1', {**sample_user_data, 'name': 'Author'})
    fake_db.seed('users', 'voter-1', {'name': 'Voter', 'score': 0, 'level': 1})
    fake_db.seed('users', 'helper-1', {'name': 'Helper', 'score': 0, 'level': 1})
    fake_db.seed('questions', 'question-1', sample_question)
    return fake_db


@pytest.fixture
def notification_service(fake_db):
    return NotificationService(fake_db)


@pytest.fixture
def user_service(fake_db, notification_service):
    return UserService(fake_db, notification_service)


@pytest.fixture
def question_service(fake_db, user_service, notification_service):
    return QuestionService(fake_db, user_service, notification_service)


@pytest.fixture
def vote_service(fake_db, user_service, notification_service):
    return VoteService(fake_db, user_service, notification_service)


@pytest.fixture
def app(seeded_db):
    from educonnect.main import create_app
    app = create_app(db=seeded_db, config=TestingConfig)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Test client for Flask app"""
    with app.test_client() as client:
        yield client


@pytest.fixture
def auth_as():
    """Patch token verification to authenticate as the given claims"""
    with patch('firebase_admin.auth.verify_id_token') as mock_verify:
        def login(uid, **claims):
            mock_verify.return_value = {'uid': uid, **claims}
            return {'Authorization': 'Bearer fake-token'}
        yield login
