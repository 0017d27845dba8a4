"""
Pytest configuration and fixtures.

The application is built with create_app() and a dependency container
holding in-memory repositories and a fake Redis client, so the suite
runs without Postgres, Redis, Stripe or Paystack.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import requests

from spooky_styles.app import create_app
from spooky_styles.cache import Cache
from spooky_styles.core.config import Config, PaystackConfig, RedisConfig, StripeConfig
from spooky_styles.core.dependencies import DependencyContainer
from spooky_styles.repositories import (
    CartRepository,
    InspirationRepository,
    OrderRepository,
    ProductRepository,
    UserRepository,
)
from spooky_styles.services import (
    CartService,
    InspirationService,
    OrderService,
    PaymentService,
    PaystackService,
    ProductService,
    UserService,
)

from fakes import (
    FakeCartRepository,
    FakeInspirationRepository,
    FakeOrderRepository,
    FakeProductRepository,
    FakeRedis,
    FakeUserRepository,
    PAYSTACK_SECRET,
    SESSION_ID,
    STRIPE_WEBHOOK_SECRET,
)


@pytest.fixture
def test_config():
    """
    Configuration with test credentials for both payment providers.

    Scope: function
    """
    cfg = Config()
    cfg.environment = "test"
    cfg.redis = RedisConfig(url="redis://fake:6379/0", enabled=True, default_ttl=3600, search_ttl=1800)
    cfg.stripe = StripeConfig(secret_key="sk_test_spooky", webhook_secret=STRIPE_WEBHOOK_SECRET, currency="usd")
    cfg.paystack = PaystackConfig(secret_key=PAYSTACK_SECRET, currency="NGN")
    cfg.api.cors_origins = ["http://localhost:3000"]
    return cfg


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(test_config, fake_redis):
    return Cache(test_config.redis, client=fake_redis)


@pytest.fixture
def repos():
    """
    In-memory repositories sharing one product table.

    Scope: function (fresh data per test)
    """
    products = FakeProductRepository()
    carts = FakeCartRepository(products)
    return SimpleNamespace(
        products=products,
        carts=carts,
        orders=FakeOrderRepository(products, carts),
        inspirations=FakeInspirationRepository(products),
        users=FakeUserRepository(),
    )


@pytest.fixture
def paystack_http():
    """
    Mocked requests.Session used by PaystackService.

    Tests set paystack_http.request.return_value to a fake response.
    """
    return Mock(spec=requests.Session)


@pytest.fixture
def services(repos, cache, test_config, paystack_http):
    product_service = ProductService(repos.products, cache, test_config.redis)
    cart_service = CartService(repos.carts, repos.products)
    order_service = OrderService(repos.orders, repos.carts, repos.products, test_config.stripe.currency)
    return SimpleNamespace(
        products=product_service,
        cart=cart_service,
        orders=order_service,
        payments=PaymentService(order_service, repos.orders, repos.carts, test_config.stripe),
        paystack=PaystackService(repos.orders, test_config.paystack, session=paystack_http),
        inspirations=InspirationService(repos.inspirations, repos.products, cart_service),
        users=UserService(repos.users),
    )


@pytest.fixture
def container(repos, services, cache):
    """Dependency container wired with the fakes, keyed by the real classes"""
    c = DependencyContainer()
    c.register_singleton(Cache, cache)
    c.register_singleton(ProductRepository, repos.products)
    c.register_singleton(CartRepository, repos.carts)
    c.register_singleton(OrderRepository, repos.orders)
    c.register_singleton(InspirationRepository, repos.inspirations)
    c.register_singleton(UserRepository, repos.users)
    c.register_singleton(ProductService, services.products)
    c.register_singleton(CartService, services.cart)
    c.register_singleton(OrderService, services.orders)
    c.register_singleton(PaymentService, services.payments)
    c.register_singleton(PaystackService, services.paystack)
    c.register_singleton(InspirationService, services.inspirations)
    c.register_singleton(UserService, services.users)
    return c


@pytest.fixture
def app(test_config, container):
    application = create_app(test_config, container)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_user(repos):
    return repos.users.add(is_admin=True, name="Admin")


@pytest.fixture
def customer(repos):
    return repos.users.add(name="Casey Customer")


@pytest.fixture
def guest_headers():
    return {"X-Session-Id": SESSION_ID}


@pytest.fixture
def sample_product_data():
    """Valid body for POST /api/products"""
    return {
        "name": "Witch's Midnight Cascade",
        "description": "Long black wig with purple highlights",
        "price_cents": 2999,
        "promotional_price_cents": 2499,
        "category": "wig",
        "theme": "witch",
        "thumbnail_url": "/images/witch-thumb.png",
        "image_url": "/images/witch-main.png",
        "ar_image_url": "/images/witch-ar.png",
        "stock_quantity": 50,
        "is_accessory": False,
    }


@pytest.fixture
def sample_guest_info():
    return {
        "email": "Morticia@Gmail.com",
        "name": "Morticia Addams",
        "address": "1313 Cemetery Lane",
        "city": "Westfield",
        "state": "NJ",
        "zip_code": "07090",
    }


@pytest.fixture
def sample_address_data():
    """Valid body for PUT /api/user/address"""
    return {
        "phone": "555-0131",
        "address": "0001 Cemetery Ridge",
        "city": "Mockingbird Heights",
        "state": "CA",
        "zip_code": "90210-1313",
    }
