from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient, APIRequestFactory, force_authenticate

from notifications.models import Notification
from services.tests.factories import make_profile, make_car, make_ride, make_join_request
from .models import RideRequest
from .views import request_ride, respond_to_request


class RideRequestFlowTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.driver = make_profile('driver')
		self.passenger = make_profile('passenger')
		self.ride = make_ride(self.driver, seats=1)

	def test_request_then_accept_updates_seat_ledger(self):
		request = self.factory.post('/api/rides/%d/request/' % self.ride.id)
		force_authenticate(request, user=self.passenger.user)
		response = request_ride(request, ride_id=self.ride.id)

		self.assertEqual(response.status_code, 201)
		request_id = response.data['request']['id']

		request = self.factory.post(
			'/api/rides/requests/%d/respond/' % request_id, {'status': 'accepted'}, format='json'
		)
		force_authenticate(request, user=self.driver.user)
		response = respond_to_request(request, request_id=request_id)

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['success'])
		self.assertEqual(response.data['request']['status'], RideRequest.STATUS_ACCEPTED)
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.seats_available, 0)

	def test_full_ride_returns_capacity_error(self):
		self.ride.seats_available = 0
		self.ride.save()

		request = self.factory.post('/api/rides/%d/request/' % self.ride.id)
		force_authenticate(request, user=self.passenger.user)
		response = request_ride(request, ride_id=self.ride.id)

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data, {
			'success': False,
			'error': 'capacity_exceeded',
			'message': 'This ride is full.',
		})

	def test_passenger_cannot_respond_to_own_request(self):
		join_request = make_join_request(self.ride, self.passenger)

		request = self.factory.post(
			'/api/rides/requests/%d/respond/' % join_request.id, {'status': 'accepted'}, format='json'
		)
		force_authenticate(request, user=self.passenger.user)
		response = respond_to_request(request, request_id=join_request.id)

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['error'], 'unauthorized')
		join_request.refresh_from_db()
		self.assertEqual(join_request.status, RideRequest.STATUS_PENDING)

	def test_unknown_request_is_404(self):
		request = self.factory.post('/api/rides/requests/999/respond/', {'status': 'accepted'}, format='json')
		force_authenticate(request, user=self.driver.user)
		response = respond_to_request(request, request_id=999)

		self.assertEqual(response.status_code, 404)


class RideEndpointTests(TestCase):
	def setUp(self):
		self.driver = make_profile('driver')
		self.passenger = make_profile('passenger')
		self.client = APIClient()

	def test_create_ride_and_list_mine(self):
		make_car(self.driver)
		self.client.force_authenticate(self.driver.user)

		response = self.client.post('/api/rides/', {
			'origin': 'Ithaca',
			'destination': 'Boston',
			'departure_time': (timezone.now() + timedelta(days=2)).isoformat(),
			'seats': 3,
			'price': 30,
		}, format='json')

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['ride']['seats_available'], 3)
		self.assertEqual(response.data['ride']['car']['make'], 'Toyota')

		mine = self.client.get('/api/rides/mine/')
		self.assertEqual(len(mine.data), 1)

	def test_create_ride_rejects_same_origin_and_destination(self):
		self.client.force_authenticate(self.driver.user)
		response = self.client.post('/api/rides/', {
			'origin': 'Ithaca',
			'destination': 'Ithaca',
			'departure_time': (timezone.now() + timedelta(days=2)).isoformat(),
			'seats': 1,
		}, format='json')

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'validation_error')

	def test_cancel_then_complete_is_invalid_state(self):
		ride = make_ride(self.driver, hours_ahead=-1)
		self.client.force_authenticate(self.driver.user)

		self.assertEqual(self.client.post('/api/rides/%d/cancel/' % ride.id).status_code, 200)
		response = self.client.post('/api/rides/%d/complete/' % ride.id)

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'invalid_state')

	def test_complete_and_rate(self):
		ride = make_ride(self.driver, seats=2, seats_available=1, hours_ahead=-1)
		make_join_request(ride, self.passenger, status=RideRequest.STATUS_ACCEPTED)

		self.client.force_authenticate(self.driver.user)
		self.assertEqual(self.client.post('/api/rides/%d/complete/' % ride.id).status_code, 200)

		self.client.force_authenticate(self.passenger.user)
		response = self.client.post('/api/rides/%d/ratings/' % ride.id, {
			'ratee_id': self.driver.pk,
			'rating': 5,
			'comment': 'Great drive',
		}, format='json')
		self.assertEqual(response.status_code, 201)

		again = self.client.post('/api/rides/%d/ratings/' % ride.id, {
			'ratee_id': self.driver.pk,
			'rating': 3,
		}, format='json')
		self.assertEqual(again.status_code, 409)
		self.assertEqual(again.data['error'], 'duplicate')

	def test_cancel_request_endpoint(self):
		ride = make_ride(self.driver)
		join_request = make_join_request(ride, self.passenger)
		self.client.force_authenticate(self.passenger.user)

		response = self.client.post('/api/rides/requests/%d/cancel/' % join_request.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['request']['status'], RideRequest.STATUS_CANCELLED)
		self.assertTrue(Notification.objects.filter(
			recipient=self.driver, type=Notification.PASSENGER_CANCELLED
		).exists())

	def test_incoming_and_outgoing_lists(self):
		ride = make_ride(self.driver)
		make_join_request(ride, self.passenger)

		self.client.force_authenticate(self.driver.user)
		incoming = self.client.get('/api/rides/requests/incoming/')
		self.assertEqual(len(incoming.data), 1)
		self.assertEqual(incoming.data[0]['passenger']['id'], self.passenger.pk)

		self.client.force_authenticate(self.passenger.user)
		outgoing = self.client.get('/api/rides/requests/outgoing/')
		self.assertEqual(len(outgoing.data), 1)
		self.assertEqual(outgoing.data[0]['ride']['id'], ride.id)

	def test_public_profile_hides_contact_details(self):
		ride = make_ride(self.driver)
		self.client.force_authenticate(self.passenger.user)

		response = self.client.get('/api/feed/')

		driver = response.data[0]['item']['driver']
		self.assertNotIn('phone_number', driver)
		self.assertNotIn('payment_methods', driver)
		self.assertEqual(response.data[0]['item']['id'], ride.id)

	def test_feed_rejects_bad_date(self):
		self.client.force_authenticate(self.passenger.user)
		response = self.client.get('/api/feed/', {'date': 'tomorrow'})
		self.assertEqual(response.status_code, 400)

	def test_requires_authentication(self):
		response = self.client.post('/api/rides/', {}, format='json')
		self.assertEqual(response.status_code, 401)


class HealthCheckTests(TestCase):
	def test_health(self):
		response = APIClient().get('/health/')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['services']['database'], 'healthy')
