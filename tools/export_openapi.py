import json
from mealshelf.main import app

def main():
    schema = app.openapi()
    with open("openapi.json", "w", encoding="utf-8") as f:
        json.dump(schema, f, ensure_ascii=False, indent=2)
    print(f"✅ openapi.json escrito en el repo raíz ({len(schema.get('paths', {}))} rutas)")

if __name__ == "__main__":
    main()
