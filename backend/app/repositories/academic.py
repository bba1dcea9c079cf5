from __future__ import annotations

from sqlalchemy import select

from app.models.academic import SchoolClass, Subject, Teacher, TeacherAssignment, Term
from app.repositories.base import SessionRepository


class TermRepository(SessionRepository):
    def find_by_id(self, term_id: str) -> Term | None:
        with self._reader() as db:
            return db.get(Term, term_id)


class ClassRepository(SessionRepository):
    def find_by_id(self, class_id: str) -> SchoolClass | None:
        with self._reader() as db:
            return db.get(SchoolClass, class_id)


class SubjectRepository(SessionRepository):
    def find_by_id(self, subject_id: str) -> Subject | None:
        with self._reader() as db:
            return db.get(Subject, subject_id)


class TeacherRepository(SessionRepository):
    def find_by_id(self, teacher_id: str) -> Teacher | None:
        with self._reader() as db:
            return db.get(Teacher, teacher_id)


class TeacherAssignmentRepository(SessionRepository):
    def list_by_class_and_term(self, class_id: str, term_id: str) -> list[TeacherAssignment]:
        query = (
            select(TeacherAssignment)
            .where(TeacherAssignment.class_id == class_id, TeacherAssignment.term_id == term_id)
            .order_by(TeacherAssignment.subject_id, TeacherAssignment.teacher_id)
        )
        with self._reader() as db:
            return list(db.execute(query).scalars())
