from django.test import TestCase
from rest_framework.test import APIClient

from drivers.models import Car
from drivers import services
from services.ride_management.exceptions import NotFoundError, RideValidationError
from services.tests.factories import make_profile, make_car


class CarServiceTests(TestCase):
    def setUp(self):
        self.owner = make_profile("owner")

    def test_first_car_becomes_default(self):
        first = services.add_car(self.owner, {"make": "Honda", "model": "Civic", "license_plate": "H1"})
        second = services.add_car(self.owner, {"make": "Ford", "model": "Focus", "license_plate": "F1"})
        self.assertTrue(first.is_default)
        self.assertFalse(second.is_default)

    def test_required_fields(self):
        with self.assertRaises(RideValidationError):
            services.add_car(self.owner, {"make": "Honda", "model": "", "license_plate": "H1"})

    def test_set_default_is_exclusive_and_idempotent(self):
        a = make_car(self.owner, plate="A", is_default=True)
        b = make_car(self.owner, plate="B", is_default=False)

        services.set_default_car(self.owner, b.id)
        services.set_default_car(self.owner, b.id)

        defaults = list(Car.objects.filter(owner=self.owner, is_default=True).values_list("id", flat=True))
        self.assertEqual(defaults, [b.id])
        a.refresh_from_db()
        self.assertFalse(a.is_default)

    def test_set_default_leaves_other_owners_alone(self):
        other = make_profile("other")
        theirs = make_car(other, plate="T", is_default=True)
        mine = make_car(self.owner, plate="M", is_default=False)

        services.set_default_car(self.owner, mine.id)

        theirs.refresh_from_db()
        self.assertTrue(theirs.is_default)

    def test_cannot_default_someone_elses_car(self):
        theirs = make_car(make_profile("other"), plate="T")
        with self.assertRaises(NotFoundError):
            services.set_default_car(self.owner, theirs.id)

    def test_update_is_partial(self):
        car = make_car(self.owner, plate="OLD")
        services.update_car(self.owner, car.id, {"color": "Red"})
        car.refresh_from_db()
        self.assertEqual(car.color, "Red")
        self.assertEqual(car.license_plate, "OLD")


class CarAPITests(TestCase):
    def setUp(self):
        self.owner = make_profile("owner")
        self.client = APIClient()
        self.client.force_authenticate(self.owner.user)

    def test_add_and_list(self):
        response = self.client.post("/api/driver/cars/", {
            "make": "Subaru", "model": "Outback", "license_plate": "SUB1", "is_insured": True,
        }, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data["is_default"])

        listing = self.client.get("/api/driver/cars/")
        self.assertEqual([c["license_plate"] for c in listing.data], ["SUB1"])

    def test_set_default_endpoint(self):
        make_car(self.owner, plate="A", is_default=True)
        b = make_car(self.owner, plate="B", is_default=False)

        response = self.client.post(f"/api/driver/cars/{b.id}/default/")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["car"]["is_default"])

    def test_delete_other_owners_car_is_404(self):
        theirs = make_car(make_profile("other"), plate="T")
        response = self.client.delete(f"/api/driver/cars/{theirs.id}/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"], "not_found")
        self.assertTrue(Car.objects.filter(pk=theirs.pk).exists())
