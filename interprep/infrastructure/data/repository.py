"""
Repository for interview sessions, assessments and assessment results.

Storage is injected: InMemoryStorage for tests and demos, JsonFileStorage
for a real data directory (one JSON document per record).
"""
import os
import json
import uuid
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ...interview.models import Assessment, AssessmentResult, InterviewSession

logger = logging.getLogger("repository")

SESSIONS = "sessions"
ASSESSMENTS = "assessments"
RESULTS = "results"


class StorageBackend(ABC):
    """Document storage keyed by collection and id."""

    @abstractmethod
    def put(self, collection: str, key: str, document: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def list(self, collection: str) -> List[Dict[str, Any]]:
        pass


class InMemoryStorage(StorageBackend):
    """Process-local storage; documents are copied in and out."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, str]] = {}
        self._lock = threading.Lock()

    def put(self, collection, key, document):
        with self._lock:
            self._collections.setdefault(collection, {})[key] = json.dumps(document)

    def get(self, collection, key):
        with self._lock:
            raw = self._collections.get(collection, {}).get(key)
        return json.loads(raw) if raw is not None else None

    def list(self, collection):
        with self._lock:
            raws = list(self._collections.get(collection, {}).values())
        return [json.loads(raw) for raw in raws]


class JsonFileStorage(StorageBackend):
    """One JSON file per document under <directory>/<collection>/<id>.json."""

    def __init__(self, directory: str):
        self.directory = directory
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, collection: str, key: str) -> str:
        if not key or key in (".", "..") or "/" in key or "\\" in key or os.sep in key:
            raise ValueError(f"Invalid record id {key!r}")
        return os.path.join(self.directory, collection, f"{key}.json")

    def put(self, collection, key, document):
        path = self._path(collection, key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp_path = path + ".tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
        logger.debug(f"Saved {collection}/{key}")

    def get(self, collection, key):
        try:
            path = self._path(collection, key)
        except ValueError as e:
            logger.warning(f"Rejected lookup in {collection}: {e}")
            return None
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable record {collection}/{key}: {e}")
            return None

    def list(self, collection):
        folder = os.path.join(self.directory, collection)
        if not os.path.isdir(folder):
            return []

        documents = []
        for filename in sorted(os.listdir(folder)):
            if not filename.endswith('.json'):
                continue
            try:
                with open(os.path.join(folder, filename), 'r', encoding='utf-8') as f:
                    documents.append(json.load(f))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping unreadable record {collection}/{filename}: {e}")
        return documents


def new_id() -> str:
    return uuid.uuid4().hex


class InterviewRepository:
    """
    Stores sessions, assessments and results.

    Construct one per application and pass it to the flows that need it.
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    # Sessions

    def save_session(self, session: InterviewSession) -> str:
        session_id = new_id()
        self.storage.put(SESSIONS, session_id, {"id": session_id, **session.to_dict()})
        logger.info(f"Saved interview session {session_id} ({session.type}, avg {session.average_score})")
        return session_id

    def get_session(self, session_id: str) -> Optional[InterviewSession]:
        data = self.storage.get(SESSIONS, session_id)
        return InterviewSession.from_dict(data) if data else None

    def list_sessions(self) -> List[InterviewSession]:
        """All sessions, newest first."""
        sessions = [InterviewSession.from_dict(d) for d in self.storage.list(SESSIONS)]
        return sorted(sessions, key=lambda s: s.date, reverse=True)

    # Assessments

    def save_assessment(self, assessment: Assessment) -> str:
        self.storage.put(ASSESSMENTS, assessment.id, assessment.to_dict())
        logger.info(f"Saved assessment {assessment.id} for {assessment.job_role}")
        return assessment.id

    def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        data = self.storage.get(ASSESSMENTS, assessment_id)
        return Assessment.from_dict(data) if data else None

    def list_assessments(self, created_by: Optional[str] = None) -> List[Assessment]:
        assessments = [Assessment.from_dict(d) for d in self.storage.list(ASSESSMENTS)]
        if created_by is not None:
            assessments = [a for a in assessments if a.created_by == created_by]
        return sorted(assessments, key=lambda a: a.created_at, reverse=True)

    # Results

    def save_result(self, result: AssessmentResult) -> str:
        self.storage.put(RESULTS, result.id, result.to_dict())
        logger.info(f"Saved assessment result {result.id} for assessment {result.assessment_id}")
        return result.id

    def list_results(self, assessment_id: Optional[str] = None) -> List[AssessmentResult]:
        results = [AssessmentResult.from_dict(d) for d in self.storage.list(RESULTS)]
        if assessment_id is not None:
            results = [r for r in results if r.assessment_id == assessment_id]
        return sorted(results, key=lambda r: r.completed_at, reverse=True)
