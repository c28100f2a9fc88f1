"""Simple house shell from the stock template.

10m x 5m, walls from Level 1 (0m) up to Level 2 (4m)
- 4 walls (Generic - 200mm), counter-clockwise from the south wall
- 1 door (middle of the south wall)
- 3 windows (middle of the east, north and west walls, 1.5m sill)
- 1 gable roof (Типовой - 400мм), ridge along X

   N
   ↑
   |
   +--- E

Layout (top view):
   (-5,2.5) ------------ (5,2.5)
      |                     |
   W  |        room         |  E
      |                     |
   (-5,-2.5) ----------- (5,-2.5)
              S (door here)
"""

import logging
from pathlib import Path

from house_builder.command import CreateHouseCommand
from house_builder.models import Document

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

doc = Document.from_template(title="Simple House")

# --- Build ---
result = CreateHouseCommand().execute(doc)
if not result.succeeded:
    raise SystemExit(f"❌ {result.result.value}: {result.message}")
print(f"✅ {result.result.value}: {len(result.element_ids)} elements")
for name in doc.transaction_log:
    print(f"   • {name}")

# --- Validate ---
errors = doc.validate_elements()
if errors:
    print("⚠️  Validation errors:")
    for e in errors:
        print(f"  [{e.severity}] {e.element_type}: {e.message}")
else:
    print("✅ Validation passed")

# --- Export ---
output = Path(__file__).parent / "output"
output.mkdir(exist_ok=True)

doc.save(output / "simple_house.json")
ifc_file = doc.export_ifc(output / "simple_house.ifc")
plan_file = doc.render_floorplan("Level 1", output / "simple_house.png")

roof = doc.roofs[0]
print(f"📁 Exported to: {ifc_file}")
print(f"🖼️  Floor plan: {plan_file}")
print(doc.summary())
print(f"   Roof pitch: {roof.pitch:.1f}°, ridge at {roof.ridge_point.z:.2f}m")
print(f"   Roof footprint: {roof.footprint().area:.1f} m²")
