"""
Seed script for local testing of the drawing tracker.
Creates a demo project with drawings spread across the three source
collections, plus the matching rows in `drawings`.

Usage:
    python -m core.seed_local
"""
from settings import get_settings
from adapters.sqlite import SqliteAdapter
from adapters.json import JsonAdapter

PROJECT_ID = "demo-project"

DRAWING_LOG = [
    {"dwg": "R-1", "status": "APP", "description": "Roof framing plan", "total_weight": 1250.5,
     "latest_submitted_date": "2024-01-15", "project_id": PROJECT_ID},
    {"dwg": "R-2", "status": "R&R", "description": "Roof bracing details", "total_weight": 830,
     "latest_submitted_date": "2024-02-02", "project_id": PROJECT_ID},
    {"dwg": "C-10", "status": "REJ", "description": "Column schedule", "total_weight": 4200,
     "latest_submitted_date": "2023-11-20", "project_id": PROJECT_ID},
]

YET_TO_RELEASE = [
    {"dwg_no": "B-4", "status": "APP", "description": "Beam connections level 2", "total_weight_tons": 312.75,
     "latest_submitted_date": "2024-03-01", "project_id": PROJECT_ID},
    {"dwg_no": "S-7", "description": "Stair stringers", "total_weight_tons": 48,
     "latest_submitted_date": "", "project_id": PROJECT_ID},
]

YET_TO_RETURN = [
    {"dwg_no": "R-3", "status": "APP", "description": "Roof edge angles", "total_weight_tons": 71500,
     "latest_submitted_date": "2023-09-06", "project_id": PROJECT_ID},
]


def _adapter(settings):
    backend = settings.storage_backend.lower()
    if backend == "sqlite":
        return SqliteAdapter.from_url(settings.db_url)
    if backend == "json":
        return JsonAdapter(settings.json_data_dir)
    return None


def seed(adapter) -> None:
    adapter.add_rows("projects", [
        {"id": PROJECT_ID, "project_name": "Demo Warehouse", "project_number": "P-0001"},
    ])
    adapter.add_rows("drawing_log", DRAWING_LOG)
    adapter.add_rows("drawings_yet_to_release", YET_TO_RELEASE)
    adapter.add_rows("drawings_yet_to_return", YET_TO_RETURN)

    # Drawing rows that revisions and release status are written onto
    dwg_numbers = [d["dwg"] for d in DRAWING_LOG] + [d["dwg_no"] for d in YET_TO_RELEASE + YET_TO_RETURN]
    adapter.add_rows("drawings", [
        {"id": f"dwg-{n.lower()}", "project_id": PROJECT_ID, "dwg_no": n} for n in dwg_numbers
    ])


def main():
    print("🌱 Seeding drawing tracker...")

    settings = get_settings()
    print(f"📦 Using {settings.storage_backend} backend")

    adapter = _adapter(settings)
    if adapter is None:
        print(f"❌ Seeding not implemented for {settings.storage_backend}")
        return

    seed(adapter)

    total = len(DRAWING_LOG) + len(YET_TO_RELEASE) + len(YET_TO_RETURN)
    print("\n" + "=" * 60)
    print("🎉 Seeding complete!")
    print("=" * 60)
    print(f"\n📋 Project ID: {PROJECT_ID}")
    print(f"📋 Drawings:   {total} across 3 sources")
    print("\n🔗 Try:")
    print("   http://localhost:8000/drawings?page=1&pageSize=20")
    print("   http://localhost:8000/drawings/search?dwgNo=r-3")
    print()


if __name__ == "__main__":
    main()
