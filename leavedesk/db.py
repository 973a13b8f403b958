# leavedesk/db.py
"""MongoDB backend for the storage engine."""
import logging
from typing import Optional

from bson.errors import BSONError
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from .schemas import LeaveRequest, User
from .storage import Storage, utcnow

logger = logging.getLogger("leavedesk.db")

USERS = "users"
LEAVE_REQUESTS = "leaveRequests"


def safe_create_index(collection, keys, **kwargs):
    try:
        return collection.create_index(keys, **kwargs)
    except PyMongoError as e:
        logger.warning("Skipping index %s: %s", kwargs.get("name"), e)
        return None


def _user_to_doc(user: User) -> dict:
    doc = user.model_dump(by_alias=True, exclude_none=True)
    doc["_id"] = doc.pop("id")
    return doc


def _user_from_doc(doc: dict) -> User:
    data = dict(doc)
    data["id"] = data.pop("_id")
    data.setdefault("createdAt", utcnow())
    return User.model_validate(data)


def _request_to_doc(request: LeaveRequest) -> dict:
    doc = request.model_dump(by_alias=True, exclude_none=True)
    doc["_id"] = doc.pop("id")
    # BSON has no plain date type; calendar dates are kept as ISO strings
    doc["fromDate"] = request.from_date.isoformat()
    doc["toDate"] = request.to_date.isoformat()
    return doc


def _request_from_doc(doc: dict) -> LeaveRequest:
    data = dict(doc)
    data["id"] = data.pop("_id")
    now = utcnow()
    data.setdefault("submittedAt", now)
    data.setdefault("updatedAt", data["submittedAt"])
    return LeaveRequest.model_validate(data)


class MongoStorage(Storage):
    name = "mongo"
    backend_errors = (PyMongoError, BSONError)

    def __init__(self, database, strict_reads: bool = False, client: Optional[MongoClient] = None):
        super().__init__(strict_reads)
        self._client = client
        self.users = database[USERS]
        self.leave_requests = database[LEAVE_REQUESTS]

    @classmethod
    def from_settings(cls, settings) -> "MongoStorage":
        client = MongoClient(settings.MONGODB_URI, serverSelectionTimeoutMS=5000)
        storage = cls(client[settings.DB_NAME], strict_reads=settings.STRICT_READS, client=client)
        storage.ensure_indexes()
        logger.info("Using MongoDB storage %s/%s", settings.MONGODB_URI, settings.DB_NAME)
        return storage

    def ensure_indexes(self) -> None:
        # email is looked up but deliberately not unique
        safe_create_index(self.users, [("email", ASCENDING)], name="email")
        safe_create_index(
            self.leave_requests,
            [("userId", ASCENDING), ("submittedAt", DESCENDING)],
            name="user_submitted",
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def _load_user(self, user_id):
        doc = self.users.find_one({"_id": user_id})
        return _user_from_doc(doc) if doc else None

    def _find_user_by_email(self, email):
        doc = self.users.find_one({"email": email})
        return _user_from_doc(doc) if doc else None

    def _save_user(self, user):
        doc = _user_to_doc(user)
        self.users.replace_one({"_id": doc["_id"]}, doc, upsert=True)

    def _load_leave_request(self, request_id):
        doc = self.leave_requests.find_one({"_id": request_id})
        return _request_from_doc(doc) if doc else None

    def _list_leave_requests(self, user_id=None):
        query = {} if user_id is None else {"userId": user_id}
        cursor = self.leave_requests.find(query).sort("submittedAt", DESCENDING)
        return [_request_from_doc(doc) for doc in cursor]

    def _save_leave_request(self, request):
        doc = _request_to_doc(request)
        self.leave_requests.replace_one({"_id": doc["_id"]}, doc, upsert=True)

    def _merge_leave_request(self, request_id, changes):
        fields = LeaveRequest.model_fields
        update = {fields[key].alias or key: value for key, value in changes.items()}
        doc = self.leave_requests.find_one_and_update(
            {"_id": request_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        return _request_from_doc(doc) if doc else None

    def _remove_leave_request(self, request_id):
        result = self.leave_requests.delete_one({"_id": request_id})
        return result.deleted_count > 0
