import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from conambiente.storage.models import News, Project, Subscriber
from conambiente.utils.tz_utils import utc_now_ms

logger = logging.getLogger(__name__)

NEWS = "noticias"
PROJECTS = "proyectos"
SUBSCRIBERS = "suscriptores"

# más recientes primero; _id desempata creaciones en el mismo milisegundo
RECENT_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]

_client: Optional[MongoClient] = None
_db: Optional[Database] = None


# ---------- Conexión (una por proceso) ----------
def connect(uri: str, default_db: str = "conambiente", timeout_ms: int = 5000) -> Database:
    """Abre la conexión global y verifica que Mongo responde; si no, propaga el error."""
    global _client
    client = MongoClient(
        uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        socketTimeoutMS=timeout_ms * 4,
    )
    client.admin.command("ping")
    _client = client
    db = client.get_default_database(default=default_db)
    use_database(db)
    logger.info("MongoDB conectado correctamente (db=%s)", db.name)
    return db


def use_database(db: Database) -> None:
    global _db
    _db = db
    ensure_indexes()


def ensure_indexes() -> None:
    db = get_db()
    db[SUBSCRIBERS].create_index([("email", ASCENDING)], unique=True)
    db[PROJECTS].create_index([("departamento", ASCENDING)])
    for name in (NEWS, PROJECTS):
        db[name].create_index(RECENT_FIRST)


def close() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
        logger.info("MongoDB: conexión cerrada")
    _client = None
    _db = None


def get_db() -> Database:
    if _db is None:
        raise RuntimeError("La base de datos no está inicializada")
    return _db


def _object_id(entity_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(entity_id)
    except (InvalidId, TypeError):
        return None


# ---------- Helpers genéricos por colección ----------
def _list(collection: str, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    return list(get_db()[collection].find(query or {}).sort(RECENT_FIRST))


def _get(collection: str, entity_id: str) -> Optional[Dict[str, Any]]:
    oid = _object_id(entity_id)
    if oid is None:
        return None
    return get_db()[collection].find_one({"_id": oid})


def _insert(collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    now = utc_now_ms()
    doc = dict(fields, createdAt=now, updatedAt=now)
    result = get_db()[collection].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def _replace_fields(collection: str, entity_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    oid = _object_id(entity_id)
    if oid is None:
        return None
    changes = dict(fields, updatedAt=utc_now_ms())
    result = get_db()[collection].update_one({"_id": oid}, {"$set": changes})
    if result.matched_count == 0:
        return None
    return get_db()[collection].find_one({"_id": oid})


def _delete(collection: str, entity_id: str) -> bool:
    oid = _object_id(entity_id)
    if oid is None:
        return False
    return get_db()[collection].delete_one({"_id": oid}).deleted_count == 1


# ---------- Noticias ----------
def list_news() -> List[News]:
    return [News.from_document(d) for d in _list(NEWS)]


def get_news(news_id: str) -> Optional[News]:
    doc = _get(NEWS, news_id)
    return News.from_document(doc) if doc else None


def create_news(fields: Dict[str, Any]) -> News:
    return News.from_document(_insert(NEWS, fields))


def update_news(news_id: str, fields: Dict[str, Any]) -> Optional[News]:
    doc = _replace_fields(NEWS, news_id, fields)
    return News.from_document(doc) if doc else None


def delete_news(news_id: str) -> bool:
    return _delete(NEWS, news_id)


# ---------- Proyectos ----------
def list_projects() -> List[Project]:
    return [Project.from_document(d) for d in _list(PROJECTS)]


def list_projects_by_department(departamento: str) -> List[Project]:
    return [Project.from_document(d) for d in _list(PROJECTS, {"departamento": departamento})]


def get_project(project_id: str) -> Optional[Project]:
    doc = _get(PROJECTS, project_id)
    return Project.from_document(doc) if doc else None


def create_project(fields: Dict[str, Any]) -> Project:
    return Project.from_document(_insert(PROJECTS, fields))


def update_project(project_id: str, fields: Dict[str, Any]) -> Optional[Project]:
    doc = _replace_fields(PROJECTS, project_id, fields)
    return Project.from_document(doc) if doc else None


def delete_project(project_id: str) -> bool:
    return _delete(PROJECTS, project_id)


# ---------- Suscriptores ----------
def find_subscriber(email: str) -> Optional[Subscriber]:
    doc = get_db()[SUBSCRIBERS].find_one({"email": email})
    return Subscriber.from_document(doc) if doc else None


def add_subscriber(email: str) -> Optional[Subscriber]:
    """Crea el suscriptor activo. Devuelve None si otro request lo creó primero."""
    try:
        doc = _insert(SUBSCRIBERS, {"email": email, "activo": True})
    except DuplicateKeyError:
        return None
    return Subscriber.from_document(doc)


def set_subscriber_active(subscriber_id: str, activo: bool) -> Optional[Subscriber]:
    doc = _replace_fields(SUBSCRIBERS, subscriber_id, {"activo": activo})
    return Subscriber.from_document(doc) if doc else None


def get_active_subscribers() -> List[Subscriber]:
    docs = get_db()[SUBSCRIBERS].find({"activo": True}).sort("createdAt", ASCENDING)
    return [Subscriber.from_document(d) for d in docs]
