"""
Static fleet used to seed a fresh database and to keep the storefront
browsable when the bikes table cannot be read.
"""
from decimal import Decimal, InvalidOperation

STATIC_BIKES = [
    {
        "id": 1,
        "name": "Yamaha Fascino",
        "brand": "Yamaha",
        "model": "2024 Model",
        "category": "scooter",
        "image_url": "https://5.imimg.com/data5/OI/XF/GLADMIN-7497522/fascino-500x500.jpg",
        "price_per_hour": Decimal("15"),
        "price_per_day": Decimal("360"),
        "rating": Decimal("4.6"),
        "total_ratings": 89,
        "location": "Malpe, Udupi",
        "fuel_type": "petrol",
        "status": "available",
        "license_required": True,
        "features": ["Fuel Efficient", "Comfortable Seat", "LED Headlight", "Digital Display"],
        "description": (
            "Stylish and fuel-efficient scooter perfect for coastal rides around Malpe and Udupi. "
            "Comfortable for both city and beach exploration."
        ),
    },
    {
        "id": 2,
        "name": "Yamaha Fascino",
        "brand": "Yamaha",
        "model": "2024 Model",
        "category": "scooter",
        "image_url": "https://imgd.aeplcdn.com/664x374/n/cw/ec/1/versions/--drum-hybrid1755152120249.jpg?q=80",
        "price_per_hour": Decimal("15"),
        "price_per_day": Decimal("360"),
        "rating": Decimal("4.5"),
        "total_ratings": 76,
        "location": "Malpe, Udupi",
        "fuel_type": "petrol",
        "status": "available",
        "license_required": True,
        "features": ["Easy Handling", "Good Mileage", "Reliable Engine", "Modern Design"],
        "description": (
            "Perfect companion for exploring the beautiful beaches and coastal roads of Malpe. "
            "Reliable and comfortable for all-day adventures."
        ),
    },
    {
        "id": 3,
        "name": "Yamaha Fascino",
        "brand": "Yamaha",
        "model": "2024 Model",
        "category": "scooter",
        "image_url": "https://imgd.aeplcdn.com/664x374/n/cw/ec/1/versions/--drum-hybrid1755152120249.jpg?q=80",
        "price_per_hour": Decimal("15"),
        "price_per_day": Decimal("360"),
        "rating": Decimal("4.7"),
        "total_ratings": 94,
        "location": "Malpe, Udupi",
        "fuel_type": "petrol",
        "status": "available",
        "license_required": True,
        "features": ["Smooth Ride", "Low Maintenance", "Stylish Look", "Perfect for Beach"],
        "description": (
            "Ideal for coastal adventures with excellent fuel efficiency and comfortable riding "
            "experience. Perfect for beach hopping and sightseeing."
        ),
    },
]


def _decimal(value):
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def filter_static_bikes(params):
    """
    Same semantics as the database filter, applied to STATIC_BIKES.
    `params` is any mapping of query parameters; invalid numbers are ignored.
    """
    items = [dict(b) for b in STATIC_BIKES if b["status"] == "available"]

    location = (params.get("location") or "").strip().lower()
    if location:
        items = [b for b in items if location in b["location"].lower()]

    category = (params.get("category") or "").strip().lower()
    if category:
        items = [b for b in items if b["category"] == category]

    price_min = _decimal(params.get("price_min"))
    if price_min is not None:
        items = [b for b in items if b["price_per_day"] >= price_min]
    price_max = _decimal(params.get("price_max"))
    if price_max is not None:
        items = [b for b in items if b["price_per_day"] <= price_max]

    for term in (params.get("q") or "").lower().split():
        items = [
            b for b in items
            if term in b["name"].lower() or term in b["brand"].lower() or term in b["model"].lower()
        ]
    return items
