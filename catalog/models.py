from django.db import models
from django.utils import timezone


class Shop(models.Model):
    name = models.CharField(max_length=255)
    created_at = models.DateField(default=timezone.localdate)
    in_vacations = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.name} (id={self.pk})"


class OpeningHoursShop(models.Model):
    DAY_CHOICES = [
        (0, 'Monday'),
        (1, 'Tuesday'),
        (2, 'Wednesday'),
        (3, 'Thursday'),
        (4, 'Friday'),
        (5, 'Saturday'),
        (6, 'Sunday'),
    ]

    shop = models.ForeignKey(Shop, related_name='opening_hours', on_delete=models.CASCADE)
    day = models.PositiveSmallIntegerField(choices=DAY_CHOICES)
    open_at = models.TimeField()
    close_at = models.TimeField()

    class Meta:
        ordering = ['day', 'open_at', 'id']

    def __str__(self):
        return f"day {self.day} {self.open_at:%H:%M}-{self.close_at:%H:%M}"


class Category(models.Model):
    name = models.CharField(max_length=255, unique=True)

    class Meta:
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


class Product(models.Model):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    # Shops are only deleted after their products have been detached.
    shop = models.ForeignKey(
        Shop, related_name='products', null=True, blank=True, on_delete=models.PROTECT,
    )
    category = models.ForeignKey(
        Category, related_name='products', null=True, blank=True, on_delete=models.SET_NULL,
    )

    def __str__(self):
        return f"{self.name} (id={self.pk})"


class SyncTracker(models.Model):
    key = models.CharField(max_length=50, unique=True, default='shop_index')
    sync_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key} (completed={self.sync_completed})"
