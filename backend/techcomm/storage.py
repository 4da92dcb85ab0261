from __future__ import annotations
from typing import Optional, Protocol

from sqlalchemy.orm import sessionmaker

from .models import KeyValue


class KeyValueStore(Protocol):
	def get(self, key: str) -> Optional[str]: ...

	def set(self, key: str, value: str) -> None: ...


class SqlKeyValueStore:
	"""Durable get/set store backed by the ``key_value`` table."""

	def __init__(self, session_factory: sessionmaker) -> None:
		self._session_factory = session_factory

	def get(self, key: str) -> Optional[str]:
		db = self._session_factory()
		try:
			row = db.get(KeyValue, key)
			return row.value if row is not None else None
		finally:
			db.close()

	def set(self, key: str, value: str) -> None:
		db = self._session_factory()
		try:
			row = db.get(KeyValue, key)
			if row is None:
				row = KeyValue(key=key, value=value)
				db.add(row)
			else:
				row.value = value
			db.commit()
		except Exception:
			db.rollback()
			raise
		finally:
			db.close()
