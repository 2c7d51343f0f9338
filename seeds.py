from car_rental import create_app
from car_rental.exceptions import DuplicateAccountError
from car_rental.models.store import Store
from car_rental.services import AdminService, UserService, VehicleService


def ensure_account(login_id: str, password: str, name: str, phone_number: str, admin_login_id: str):
    """
    Ensure an account with `login_id` exists.
    - If exists: leave it alone (idempotent).
    - If not:   sign it up like any other user.
    """
    try:
        return UserService.signup(login_id, password, name, phone_number, admin_login_id=admin_login_id)
    except DuplicateAccountError:
        return None


def main():
    app = create_app()
    with app.app_context():
        store = Store.instance()
        admin_id = app.config["ADMIN_LOGIN_ID"]

        # ---- Admin / Customer demo accounts ----
        ensure_account(admin_id, "Admin123", "Administrator", "010-0000-0000", admin_id)
        ensure_account("customer", "Customer123", "Demo Customer", "010-1234-5678", admin_id)

        # ---- Demo vehicles (create only if none exist) ----
        if not store.list_vehicles():
            VehicleService.register_vehicle("SEDAN", name="Sonata")
            VehicleService.register_vehicle("SEDAN", rate="85000", name="Avante")
            VehicleService.register_vehicle("SUV", name="Tucson")
            VehicleService.register_vehicle("BIKE", name="MT-07")

        AdminService.change_season(app.config["DEFAULT_SEASON"])

        print("Seed complete.")
        print(f"Admin login:     {admin_id} / Admin123")
        print("Customer login:  customer / Customer123")


if __name__ == "__main__":
    main()
