#!/usr/bin/env python3
"""
Creates the qrtrack schema on DATABASE_URL and seeds a demo account
WARNING: with --drop this will DELETE every scan and campaign!
"""
import sys


def main():
    drop = "--drop" in sys.argv

    print("\n" + "="*60)
    print("⚠️  FRESH DATABASE CREATION" if drop else "DATABASE SETUP")
    print("="*60)

    if drop:
        print("\nThis will DROP all qrtrack tables.")
        print("Make sure you have a backup!\n")
        response = input("Type 'yes' to continue: ")
        if response.lower() != 'yes':
            print("Aborted.")
            sys.exit(0)

    from qrtrack import create_app, db
    from qrtrack.models import User, Campaign, Locality

    app = create_app()

    with app.app_context():
        if drop:
            print("\n🔨 Dropping existing tables...")
            db.drop_all()

        db.create_all()
        print("✅ All tables created")

        if User.query.count() == 0:
            print("\n📋 Creating demo account...")
            demo = User(email="demo@example.com", full_name="Demo Account")
            db.session.add(demo)
            db.session.commit()

            db.session.add(Campaign(
                user_id=demo.id,
                name="Bondi Poster",
                tracking_code="demo-bridge",
                slug="bondi-poster",
                destination_url="https://example.com/landing",
                bridge_enabled=True,
            ))
            db.session.add(Campaign(
                user_id=demo.id,
                name="Flyer Drop",
                tracking_code="demo-direct",
                destination_url="https://example.com/landing",
                bridge_enabled=False,
            ))
            db.session.commit()
            print("✅ Demo campaigns: /go/bondi-poster (bridge), /go/demo-direct (direct)")

        if Locality.query.count() == 0:
            print("\n📍 Seeding sample localities...")
            samples = [
                ("Bondi", "2026", "New South Wales", "NSW", -33.8915, 151.2767, 11000),
                ("Bondi Beach", "2026", "New South Wales", "NSW", -33.8908, 151.2743, 11600),
                ("North Bondi", "2026", "New South Wales", "NSW", -33.8847, 151.2803, 8800),
                ("Richmond", "3121", "Victoria", "VIC", -37.8230, 144.9980, 28000),
            ]
            for name, postcode, state, code, lat, lng, population in samples:
                db.session.add(Locality(
                    locality_name=name, postcode=postcode, state=state, state_code=code,
                    latitude=lat, longitude=lng, population=population,
                ))
            db.session.commit()
            print(f"✅ {len(samples)} localities created")

    print("\n" + "="*60)
    print("✅ DATABASE READY")
    print("="*60 + "\n")


if __name__ == '__main__':
    main()
