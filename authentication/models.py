from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.validators import RegexValidator
from django.utils import timezone
import uuid
from datetime import timedelta


class Role(models.TextChoices):
    SUPER_ADMIN = 'super_admin', 'Super Admin'
    OWNER = 'owner', 'Owner'
    MANAGER = 'manager', 'Manager'
    WAITER = 'waiter', 'Waiter'
    CHEF = 'chef', 'Chef'


class CustomUserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, username, password=None, **extra_fields):
        if not username:
            raise ValueError('The Username field must be set')
        email = extra_fields.pop('email', '') or ''
        if email:
            email = self.normalize_email(email)
        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', Role.SUPER_ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(username, password, **extra_fields)


class TimeStampedModel(models.Model):
    """Base model with created_at and updated_at fields"""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# =============== USER MANAGEMENT ===============

class CustomUser(AbstractUser):
    """Restaurant staff account. Passwords only ever go through set_password()."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone_regex = RegexValidator(regex=r'^\+?1?\d{9,15}$')
    phone = models.CharField(validators=[phone_regex], max_length=17, blank=True)
    email = models.EmailField(blank=True)
    full_name = models.CharField(max_length=255)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.WAITER)

    last_login_at = models.DateTimeField(null=True, blank=True)
    login_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    REQUIRED_FIELDS = ['full_name']
    objects = CustomUserManager()

    class Meta:
        db_table = 'users'
        ordering = ['username']

    def __str__(self):
        return f"{self.full_name or self.username} ({self.role})"

    def get_full_name(self):
        return self.full_name or super().get_full_name() or self.username

    @property
    def is_locked(self):
        return self.locked_until is not None and timezone.now() < self.locked_until

    def register_failed_login(self, max_attempts, lockout_minutes):
        """Count a failed password and lock the account once the limit is hit"""
        self.login_attempts += 1
        if self.login_attempts >= max_attempts:
            self.locked_until = timezone.now() + timedelta(minutes=lockout_minutes)
            self.login_attempts = 0
        self.save(update_fields=['login_attempts', 'locked_until'])

    def register_successful_login(self):
        self.login_attempts = 0
        self.locked_until = None
        self.last_login_at = timezone.now()
        self.save(update_fields=['login_attempts', 'locked_until', 'last_login_at'])
