"""
Скрипт для инициализации базы данных.

Создаёт все таблицы напрямую через SQLAlchemy.
Используется для локального запуска вместо Alembic миграций.
"""

import asyncio

from tag_hierarchy.core.database import init_db


async def main():
    """Создать все таблицы."""
    print("Создание таблиц...")
    await init_db()
    print("✓ Таблицы созданы успешно!")


if __name__ == "__main__":
    asyncio.run(main())
