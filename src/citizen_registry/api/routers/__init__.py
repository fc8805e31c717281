# Router modules; composed in `citizen_registry.api.app`.
