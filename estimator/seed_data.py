"""Seed data for a fresh estimator database."""

CATEGORIES = [
    ('Structured Cabling', 1),
    ('Access Control', 2),
    ('Video Surveillance', 3),
    ('Intrusion Detection', 4),
    ('Audio/Visual', 5),
    ('Network Infrastructure', 6),
    ('Conduit & Pathway', 7),
    ('Fiber Optics', 8),
    ('Labor', 9),
    ('General / Misc', 10),
]

# (category, item_name, description, unit, material_cost, typical_labor_hours)
MATERIALS = [
    # Structured Cabling
    ('Structured Cabling', 'Cat6 Cable (1000ft)', 'Cat6 Plenum Rated Cable, 1000ft Box (Blue/White)', 'BOX', 285.00, 2.0),
    ('Structured Cabling', 'Cat6A Cable (1000ft)', 'Cat6A Plenum Rated Cable, 1000ft Spool', 'SPL', 380.00, 2.5),
    ('Structured Cabling', 'Cat6 Keystone Jack', 'Cat6 RJ45 Keystone Jack, Blue', 'EA', 3.50, 0.15),
    ('Structured Cabling', 'Cat6A Keystone Jack', 'Cat6A RJ45 Shielded Keystone Jack', 'EA', 6.50, 0.2),
    ('Structured Cabling', 'Patch Panel 24-Port', '24-Port Modular Patch Panel (Unloaded)', 'EA', 45.00, 0.5),
    ('Structured Cabling', 'Patch Panel 48-Port', '48-Port Modular Patch Panel (Unloaded)', 'EA', 85.00, 1.0),
    ('Structured Cabling', 'Faceplate 2-Port', 'Single Gang 2-Port Faceplate', 'EA', 1.25, 0.1),
    ('Structured Cabling', 'Faceplate 4-Port', 'Single Gang 4-Port Faceplate', 'EA', 1.25, 0.1),
    ('Structured Cabling', 'J-Hook 2"', '2-inch J-Hook with beam clamp', 'EA', 4.50, 0.15),
    ('Structured Cabling', 'Velcro Strap (Roll)', '75ft Velcro Electrical Cable Strap', 'RL', 15.00, 0),
    ('Structured Cabling', 'Patch Cord 3ft', 'Cat6 Patch Cord 3ft Blue', 'EA', 3.50, 0),
    ('Structured Cabling', 'Patch Cord 7ft', 'Cat6 Patch Cord 7ft Blue', 'EA', 4.50, 0),

    # Conduit & Pathway
    ('Conduit & Pathway', 'EMT Conduit 1/2"', '1/2" EMT Conduit (10ft)', 'EA', 7.50, 0.3),
    ('Conduit & Pathway', 'EMT Conduit 3/4"', '3/4" EMT Conduit (10ft)', 'EA', 12.00, 0.4),
    ('Conduit & Pathway', 'EMT Conduit 1"', '1" EMT Conduit (10ft)', 'EA', 18.00, 0.5),
    ('Conduit & Pathway', 'Connector 3/4"', '3/4" EMT Set Screw Connector', 'EA', 0.75, 0.05),
    ('Conduit & Pathway', 'Coupling 3/4"', '3/4" EMT Set Screw Coupling', 'EA', 0.85, 0.05),
    ('Conduit & Pathway', '4-Square Box', '4" Square Deep Box', 'EA', 4.50, 0.25),
    ('Conduit & Pathway', 'Uni-Strut', '1-5/8" Deep Unistrut (10ft)', 'EA', 28.00, 0.3),
    ('Conduit & Pathway', 'Surface Raceway', 'Wiremold 700 Series (10ft)', 'EA', 35.00, 0.5),

    # Access Control
    ('Access Control', 'Card Reader', 'HID Signo 40 Card Reader', 'EA', 225.00, 0.75),
    ('Access Control', 'Electric Strike', 'HES 5000 Electric Strike', 'EA', 185.00, 1.5),
    ('Access Control', 'Mag Lock', '1200lb Electromagnetic Lock', 'EA', 210.00, 1.5),
    ('Access Control', 'Request to Exit (Motion)', 'Bosch REX Motion Sensor', 'EA', 95.00, 0.75),
    ('Access Control', 'Door Contact', 'Recessed Door Contact 3/4"', 'EA', 15.00, 0.5),
    ('Access Control', 'Composite Cable', 'Access Control Composite Cable Plnm (500ft)', 'BOX', 450.00, 2.0),
    ('Access Control', 'Controller 4-Door', '4-Door Access Controller Board', 'EA', 1200.00, 2.0),
    ('Access Control', 'Power Supply', 'Altronix 4-Output Power Supply', 'EA', 180.00, 1.0),

    # Video Surveillance
    ('Video Surveillance', 'IP Dome Camera', '4MP Indoor/Outdoor Dome Camera', 'EA', 250.00, 1.0),
    ('Video Surveillance', 'IP Bullet Camera', '8MP 4K Bullet Camera', 'EA', 320.00, 1.0),
    ('Video Surveillance', '360 Fisheye', '12MP 360 Degree Fisheye Camera', 'EA', 550.00, 1.0),
    ('Video Surveillance', 'PTZ Camera', '25x Optical Zoom PTZ Camera', 'EA', 1200.00, 2.0),
    ('Video Surveillance', 'NVR 16-Ch', '16-Channel 4K NVR 4TB HDD', 'EA', 850.00, 1.5),
    ('Video Surveillance', 'Camera Mount', 'Pendant/Wall Mount Bracket', 'EA', 45.00, 0.5),

    # Network Infrastructure
    ('Network Infrastructure', 'Network Rack 42U', '2-Post 42U Open Frame Rack', 'EA', 250.00, 2.0),
    ('Network Infrastructure', 'Wall Mount Cabinet', '12U Wall Mount Privacy Cabinet', 'EA', 350.00, 2.5),
    ('Network Infrastructure', 'Cable Manager', '2U Horizontal Cable Manager', 'EA', 35.00, 0.1),
    ('Network Infrastructure', 'PDU', 'Rack Mount PDU 12-Outlet', 'EA', 85.00, 0.25),
    ('Network Infrastructure', 'UPS 1500VA', 'Rack Mount UPS 1500VA', 'EA', 450.00, 0.5),
    ('Network Infrastructure', 'PoE Switch 24-Port', '24-Port PoE+ Managed Switch', 'EA', 650.00, 0.5),

    # Intrusion Detection
    ('Intrusion Detection', 'Motion Detector', 'Dual Tech Motion Detector', 'EA', 45.00, 0.5),
    ('Intrusion Detection', 'Glass Break', 'Acoustic Glass Break Sensor', 'EA', 55.00, 0.5),
    ('Intrusion Detection', 'Keypad', 'LCD Touchscreen Keypad', 'EA', 220.00, 0.75),
    ('Intrusion Detection', 'Siren', '30W Indoor/Outdoor Siren', 'EA', 35.00, 0.5),

    # Audio/Visual
    ('Audio/Visual', 'TV Mount', 'Tilting Wall Mount 55-85"', 'EA', 85.00, 1.0),
    ('Audio/Visual', 'HDMI Extender', 'HDBaseT 4K HDMI Extender Set', 'EA', 250.00, 0.5),
    ('Audio/Visual', 'Ceiling Speaker', '6.5" Ceiling Speaker 70V', 'EA', 85.00, 0.75),
    ('Audio/Visual', 'Volume Control', 'Wall Mount Volume Control', 'EA', 45.00, 0.5),
    ('Audio/Visual', 'HDMI Cable 6ft', 'Primum High Speed HDMI', 'EA', 12.00, 0),

    # Fiber Optics
    ('Fiber Optics', 'Fiber Cable OM3', '6-Strand OM3 Armored Plenum (ft)', 'FT', 1.25, 0.05),
    ('Fiber Optics', 'LIU Enclosure', '1U Rack Mount Fiber Enclosure', 'EA', 120.00, 1.0),
    ('Fiber Optics', 'Adapter Panel', 'LC Adapter Panel 6-Duplex', 'EA', 35.00, 0.1),
    ('Fiber Optics', 'LC Connector', 'LC OM3 UniCam Connector', 'EA', 15.00, 0.25),

    # General / Misc
    ('General / Misc', 'Firestop Putty pad', 'Firestop Putty Pad 7x7', 'EA', 12.00, 0.25),
    ('General / Misc', 'Fire Caulk', 'Fire Barrier Sealant Tube', 'EA', 18.00, 0.1),
    ('General / Misc', 'Pull String', 'Poly Pull Line (Bucket)', 'EA', 45.00, 0),
    ('General / Misc', 'Label Tape', 'Brother TZ Tape 3/4"', 'EA', 22.00, 0),
    ('General / Misc', 'Zip Ties (100)', '8" Plenum Zip Ties 100pk', 'PK', 12.00, 0),
]
