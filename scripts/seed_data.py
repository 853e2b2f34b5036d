#!/usr/bin/env python3
"""
Seed script to populate the tag tree with a sample hierarchy.

Запуск (API должен быть поднят):
    uvicorn tag_hierarchy.main:app
    python scripts/seed_data.py
"""

import requests

API_URL = "http://localhost:8000/api/v1"
API_KEY = "dev-api-key-change-in-production"
HEADERS = {"X-API-Key": API_KEY, "Content-Type": "application/json"}

# (slug, display_name, description, children)
TREE = [
    (
        "customer",
        "Customer",
        "Задачи под заказчика",
        [
            ("fullstack", "FullStack", "Фулстек разработка", [("fullstack-java", "Java", None, [])]),
            (
                "backend",
                "Backend",
                "Серверная разработка",
                [
                    ("nodejs", "Node.js", None, []),
                    ("java", "Java", None, []),
                    ("python", "Python", None, []),
                ],
            ),
            ("frontend", "Frontend", "Клиентская разработка", []),
            ("mobile", "Mobile", "Мобильная разработка", []),
        ],
    ),
    ("internal", "Internal", "Внутренние задачи", []),
]


def create_tag(slug, display_name, description, parent_id, sort_order):
    """Create a hierarchical tag via API."""
    payload = {
        "name": slug,
        "slug_name": slug,
        "display_name": display_name,
        "sort_order": sort_order,
    }
    if description:
        payload["description"] = description
    if parent_id:
        payload["parent_id"] = parent_id

    response = requests.post(f"{API_URL}/hierarchical-tags", headers=HEADERS, json=payload)
    if response.status_code == 201:
        return response.json()
    else:
        print(f"Error creating tag {slug}: {response.text}")
        return None


def create_subtree(nodes, parent_id=None):
    """Create nodes depth-first; returns number of created tags."""
    created = 0
    for sort_order, (slug, display_name, description, children) in enumerate(nodes, start=1):
        tag = create_tag(slug, display_name, description, parent_id, sort_order)
        if tag is None:
            print(f"  ⚠️ Skipping children of {slug}")
            continue

        created += 1
        print(f"  {'  ' * tag['level']}✅ {tag['path']} (id={tag['id']})")
        created += create_subtree(children, tag["id"])
    return created


def main():
    print("=" * 60)
    print("Seeding hierarchical tags")
    print("=" * 60)

    total = create_subtree(TREE)

    print("\n" + "=" * 60)
    print(f"✅ Done! Created {total} tags")
    print("=" * 60)


if __name__ == "__main__":
    main()
