import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        ('passengers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Ride',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('origin', models.CharField(max_length=120)),
                ('destination', models.CharField(max_length=120)),
                ('departure_time', models.DateTimeField()),
                ('total_seats', models.PositiveIntegerField()),
                ('seats_available', models.IntegerField()),
                ('price', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('active', 'Active'), ('cancelled', 'Cancelled'), ('completed', 'Completed')], default='active', max_length=20)),
                ('car_make', models.CharField(blank=True, max_length=60, null=True)),
                ('car_model', models.CharField(blank=True, max_length=60, null=True)),
                ('car_year', models.PositiveIntegerField(blank=True, null=True)),
                ('car_color', models.CharField(blank=True, max_length=30, null=True)),
                ('car_license_plate', models.CharField(blank=True, max_length=20, null=True)),
                ('car_is_insured', models.BooleanField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rides_offered', to='accounts.profile')),
                ('fulfilled_from_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='offered_rides', to='passengers.passengerriderequest')),
            ],
            options={
                'db_table': 'rides',
                'ordering': ['departure_time'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('seats_available__gte', 0)), name='ride_seats_available_non_negative'),
                    models.CheckConstraint(condition=models.Q(('seats_available__lte', models.F('total_seats'))), name='ride_seats_available_within_capacity'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RideRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('cancelled', 'Cancelled'), ('pending-passenger-approval', 'Pending Passenger Approval')], default='pending', max_length=30)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('passenger', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ride_requests', to='accounts.profile')),
                ('ride', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='requests', to='rides.ride')),
            ],
            options={
                'db_table': 'requests',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('ride', 'passenger'), name='unique_ride_passenger')],
            },
        ),
        migrations.CreateModel(
            name='Rating',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rating', models.PositiveSmallIntegerField()),
                ('comment', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('ratee', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ratings_received', to='accounts.profile')),
                ('rater', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ratings_given', to='accounts.profile')),
                ('ride', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ratings', to='rides.ride')),
            ],
            options={
                'db_table': 'ratings',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('rater', 'ratee', 'ride'), name='rater_ratee_ride_unique'),
                    models.CheckConstraint(condition=models.Q(('rating__gte', 1), ('rating__lte', 5)), name='rating_between_1_and_5'),
                ],
            },
        ),
    ]
