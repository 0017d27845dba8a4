from typing import Any, Callable, Dict, Type, TypeVar

T = TypeVar("T")


class DependencyContainer:
    """Simple dependency injection container"""

    def __init__(self):
        self._services: Dict[str, Any] = {}
        self._factories: Dict[str, Callable] = {}

    def register_singleton(self, service_class: Type[T], instance: T) -> None:
        """Register a singleton instance"""
        key = self._get_service_key(service_class)
        self._services[key] = instance

    def register_factory(self, service_class: Type[T], factory: Callable[[], T]) -> None:
        """Register a factory function for creating instances"""
        key = self._get_service_key(service_class)
        self._factories[key] = factory

    def get(self, service_class: Type[T]) -> T:
        """Get service instance"""
        key = self._get_service_key(service_class)

        if key in self._services:
            return self._services[key]

        if key in self._factories:
            instance = self._factories[key]()
            # Cache as singleton
            self._services[key] = instance
            return instance

        raise ValueError(f"Service {service_class.__name__} not registered")

    def _get_service_key(self, service_class: Type[T]) -> str:
        """Get unique key for service class"""
        return f"{service_class.__module__}.{service_class.__qualname__}"


def build_container(cfg) -> DependencyContainer:
    """Wire repositories and services for a running application"""
    from spooky_styles.cache import Cache
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

    container = DependencyContainer()

    cache = Cache(cfg.redis)
    products = ProductRepository()
    carts = CartRepository()
    orders = OrderRepository()

    container.register_singleton(Cache, cache)
    container.register_singleton(ProductRepository, products)
    container.register_singleton(CartRepository, carts)
    container.register_singleton(OrderRepository, orders)

    container.register_factory(ProductService, lambda: ProductService(products, cache, cfg.redis))
    container.register_factory(CartService, lambda: CartService(carts, products))
    container.register_factory(
        OrderService, lambda: OrderService(orders, carts, products, cfg.stripe.currency)
    )
    container.register_factory(
        PaymentService,
        lambda: PaymentService(container.get(OrderService), orders, carts, cfg.stripe),
    )
    container.register_factory(PaystackService, lambda: PaystackService(orders, cfg.paystack))
    container.register_factory(
        InspirationService,
        lambda: InspirationService(InspirationRepository(products), products, container.get(CartService)),
    )
    container.register_factory(UserService, lambda: UserService(UserRepository()))

    return container
