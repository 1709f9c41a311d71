"""
Repository layer abstracting storage (SQLAlchemy vs Firebase Firestore).

Every public method dispatches on `use_firestore()` and returns plain dict
records carrying an "id" key, so services never see ORM objects or snapshots.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from firebase_admin import firestore
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import Admin, EmailLog, EmailPreset, Event, Pass, ScanLog
from app.services.firebase_client import get_firestore_client


def use_firestore() -> bool:
    return settings.USE_FIREBASE is True


def _row_to_dict(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def _doc_to_dict(doc) -> Dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def _insert_sql(db: Session, model, data: Dict[str, Any]) -> Dict[str, Any]:
    row = model(**data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return _row_to_dict(row)


def _insert_fs(collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
    fs = get_firestore_client()
    payload = dict(data)
    doc_id = payload.pop("id", None)
    ref = fs.collection(collection).document(doc_id) if doc_id else fs.collection(collection).document()
    ref.set(payload)
    payload["id"] = ref.id
    return payload


def _get_fs(collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    fs = get_firestore_client()
    doc = fs.collection(collection).document(doc_id).get()
    return _doc_to_dict(doc) if doc.exists else None


def _newest_first_fs(collection: str, order_field: str, limit: Optional[int] = None,
                     event_id: Optional[str] = None) -> List[Dict[str, Any]]:
    fs = get_firestore_client()
    query = fs.collection(collection)
    if event_id:
        query = query.where("event_id", "==", event_id)
    query = query.order_by(order_field, direction=firestore.Query.DESCENDING)
    if limit:
        query = query.limit(limit)
    return [_doc_to_dict(d) for d in query.get()]


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def create(db: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.utcnow()
        data = {**data, "created_at": now, "updated_at": now}
        if use_firestore():
            return _insert_fs("events", data)
        return _insert_sql(db, Event, data)

    @staticmethod
    def get(db: Session, event_id: str) -> Optional[Dict[str, Any]]:
        if use_firestore():
            return _get_fs("events", event_id)
        event = db.query(Event).filter(Event.id == event_id).first()
        return _row_to_dict(event) if event else None

    @staticmethod
    def list(db: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        if use_firestore():
            return _newest_first_fs("events", "created_at", limit)
        query = db.query(Event).order_by(Event.created_at.desc())
        if limit:
            query = query.limit(limit)
        return [_row_to_dict(e) for e in query.all()]

    @staticmethod
    def update(db: Session, event_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        fields = {**fields, "updated_at": datetime.utcnow()}
        if use_firestore():
            fs = get_firestore_client()
            ref = fs.collection("events").document(event_id)
            if not ref.get().exists:
                return None
            ref.set(fields, merge=True)
            return _get_fs("events", event_id)
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            return None
        for key, value in fields.items():
            setattr(event, key, value)
        db.commit()
        db.refresh(event)
        return _row_to_dict(event)

    @staticmethod
    def delete(db: Session, event_id: str) -> bool:
        if use_firestore():
            fs = get_firestore_client()
            ref = fs.collection("events").document(event_id)
            if not ref.get().exists:
                return False
            ref.delete()
            return True
        deleted = db.query(Event).filter(Event.id == event_id).delete()
        db.commit()
        return deleted > 0

    @staticmethod
    def count(db: Session) -> int:
        if use_firestore():
            fs = get_firestore_client()
            return len(fs.collection("events").get())
        return db.query(func.count(Event.id)).scalar()


# -------- Pass repository --------

class PassRepo:
    @staticmethod
    def create(db: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        data = {"used": False, "sent_at": None, "scanned_at": None, "scanned_by": None,
                **data, "created_at": datetime.utcnow()}
        if use_firestore():
            return _insert_fs("passes", data)
        return _insert_sql(db, Pass, data)

    @staticmethod
    def get(db: Session, pass_id: str) -> Optional[Dict[str, Any]]:
        if use_firestore():
            return _get_fs("passes", pass_id)
        guest_pass = db.query(Pass).filter(Pass.id == pass_id).first()
        return _row_to_dict(guest_pass) if guest_pass else None

    @staticmethod
    def get_by_code(db: Session, code: str) -> Optional[Dict[str, Any]]:
        if use_firestore():
            fs = get_firestore_client()
            docs = fs.collection("passes").where("code", "==", code).limit(1).get()
            return _doc_to_dict(docs[0]) if docs else None
        guest_pass = db.query(Pass).filter(Pass.code == code).first()
        return _row_to_dict(guest_pass) if guest_pass else None

    @staticmethod
    def code_exists(db: Session, code: str) -> bool:
        return PassRepo.get_by_code(db, code) is not None

    @staticmethod
    def list_for_event(db: Session, event_id: Optional[str] = None, pending_only: bool = False) -> List[Dict[str, Any]]:
        """Passes of an event (all events when event_id is None), oldest first."""
        if use_firestore():
            fs = get_firestore_client()
            query = fs.collection("passes")
            if event_id:
                query = query.where("event_id", "==", event_id)
            passes = [_doc_to_dict(d) for d in query.get()]
            passes.sort(key=lambda p: p.get("created_at") or datetime.min)
        else:
            query = db.query(Pass)
            if event_id:
                query = query.filter(Pass.event_id == event_id)
            passes = [_row_to_dict(p) for p in query.order_by(Pass.created_at).all()]
        if pending_only:
            passes = [p for p in passes if not p.get("sent_at")]
        return passes

    @staticmethod
    def emails_for_event(db: Session, event_id: str) -> set[str]:
        return {
            (p.get("guest_email") or "").strip().lower()
            for p in PassRepo.list_for_event(db, event_id)
        }

    @staticmethod
    def mark_sent(db: Session, pass_id: str, now: datetime) -> None:
        if use_firestore():
            fs = get_firestore_client()
            fs.collection("passes").document(pass_id).set({"sent_at": now}, merge=True)
            return
        db.query(Pass).filter(Pass.id == pass_id).update({"sent_at": now})
        db.commit()

    @staticmethod
    def mark_used(db: Session, pass_id: str, operator_id: str, now: datetime) -> bool:
        """Atomically move a pass from PENDING to USED.

        Returns True only for the caller whose write performed the transition;
        a pass that is already used (or vanished) leaves the store untouched.
        """
        if use_firestore():
            return PassRepo._mark_used_fs(pass_id, operator_id, now)

        stmt = (
            update(Pass)
            .where(Pass.id == pass_id, Pass.used == False, Pass.scanned_at.is_(None))
            .values(used=True, scanned_at=now, scanned_by=operator_id)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def _mark_used_fs(pass_id: str, operator_id: str, now: datetime) -> bool:
        fs = get_firestore_client()
        ref = fs.collection("passes").document(pass_id)

        @firestore.transactional
        def claim(transaction) -> bool:
            snapshot = ref.get(transaction=transaction)
            data = snapshot.to_dict() or {}
            if not snapshot.exists or data.get("used") or data.get("scanned_at"):
                return False
            transaction.update(ref, {"used": True, "scanned_at": now, "scanned_by": operator_id})
            return True

        return claim(fs.transaction())

    @staticmethod
    def delete(db: Session, pass_id: str) -> bool:
        if use_firestore():
            fs = get_firestore_client()
            ref = fs.collection("passes").document(pass_id)
            if not ref.get().exists:
                return False
            ref.delete()
            return True
        deleted = db.query(Pass).filter(Pass.id == pass_id).delete()
        db.commit()
        return deleted > 0

    @staticmethod
    def delete_for_event(db: Session, event_id: str) -> int:
        if use_firestore():
            fs = get_firestore_client()
            docs = fs.collection("passes").where("event_id", "==", event_id).get()
            for d in docs:
                d.reference.delete()
            return len(docs)
        deleted = db.query(Pass).filter(Pass.event_id == event_id).delete()
        db.commit()
        return deleted

    @staticmethod
    def count_for_event(db: Session, event_id: str) -> int:
        if use_firestore():
            return len(PassRepo.list_for_event(db, event_id))
        return db.query(func.count(Pass.id)).filter(Pass.event_id == event_id).scalar()


# -------- Append-only log repositories --------

class ScanLogRepo:
    @staticmethod
    def append(db: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        data = {**data, "scanned_at": data.get("scanned_at") or datetime.utcnow()}
        if use_firestore():
            return _insert_fs("scan_logs", data)
        return _insert_sql(db, ScanLog, data)

    @staticmethod
    def recent(db: Session, limit: Optional[int] = None, event_id: Optional[str] = None) -> List[Dict[str, Any]]:
        if use_firestore():
            return _newest_first_fs("scan_logs", "scanned_at", limit, event_id)
        query = db.query(ScanLog)
        if event_id:
            query = query.filter(ScanLog.event_id == event_id)
        query = query.order_by(ScanLog.scanned_at.desc())
        if limit:
            query = query.limit(limit)
        return [_row_to_dict(log) for log in query.all()]


class EmailLogRepo:
    @staticmethod
    def append(db: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        data = {**data, "sent_at": data.get("sent_at") or datetime.utcnow()}
        if use_firestore():
            return _insert_fs("email_logs", data)
        return _insert_sql(db, EmailLog, data)

    @staticmethod
    def recent(db: Session, limit: Optional[int] = None, event_id: Optional[str] = None) -> List[Dict[str, Any]]:
        if use_firestore():
            return _newest_first_fs("email_logs", "sent_at", limit, event_id)
        query = db.query(EmailLog)
        if event_id:
            query = query.filter(EmailLog.event_id == event_id)
        query = query.order_by(EmailLog.sent_at.desc())
        if limit:
            query = query.limit(limit)
        return [_row_to_dict(log) for log in query.all()]


# -------- Admin and preset repositories --------

class AdminRepo:
    @staticmethod
    def get(db: Session, uid: str) -> Optional[Dict[str, Any]]:
        if use_firestore():
            return _get_fs("admins", uid)
        admin = db.query(Admin).filter(Admin.id == uid).first()
        return _row_to_dict(admin) if admin else None

    @staticmethod
    def create(db: Session, uid: str, email: str, role: str, google_linked: bool = False) -> Dict[str, Any]:
        data = {"id": uid, "email": email, "role": role, "google_linked": google_linked,
                "created_at": datetime.utcnow()}
        if use_firestore():
            return _insert_fs("admins", data)
        return _insert_sql(db, Admin, data)

    @staticmethod
    def list(db: Session) -> List[Dict[str, Any]]:
        if use_firestore():
            return _newest_first_fs("admins", "created_at")
        return [_row_to_dict(a) for a in db.query(Admin).order_by(Admin.created_at.desc()).all()]

    @staticmethod
    def update(db: Session, uid: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if use_firestore():
            fs = get_firestore_client()
            ref = fs.collection("admins").document(uid)
            if not ref.get().exists:
                return None
            ref.set(fields, merge=True)
            return _get_fs("admins", uid)
        admin = db.query(Admin).filter(Admin.id == uid).first()
        if not admin:
            return None
        for key, value in fields.items():
            setattr(admin, key, value)
        db.commit()
        db.refresh(admin)
        return _row_to_dict(admin)

    @staticmethod
    def delete(db: Session, uid: str) -> bool:
        if use_firestore():
            fs = get_firestore_client()
            ref = fs.collection("admins").document(uid)
            if not ref.get().exists:
                return False
            ref.delete()
            return True
        deleted = db.query(Admin).filter(Admin.id == uid).delete()
        db.commit()
        return deleted > 0


class PresetRepo:
    @staticmethod
    def create(db: Session, name: str, subject: str, message: str) -> Dict[str, Any]:
        data = {"name": name, "subject": subject, "message": message, "created_at": datetime.utcnow()}
        if use_firestore():
            return _insert_fs("email_presets", data)
        return _insert_sql(db, EmailPreset, data)

    @staticmethod
    def list(db: Session) -> List[Dict[str, Any]]:
        if use_firestore():
            return _newest_first_fs("email_presets", "created_at")
        return [_row_to_dict(p) for p in db.query(EmailPreset).order_by(EmailPreset.created_at.desc()).all()]
