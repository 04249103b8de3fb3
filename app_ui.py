import logging

import pandas as pd
import streamlit as st

from food_client import config
from food_client.auth import Authenticator, auth_error_message
from food_client.checkout import (
    Checkout,
    CheckoutOutcome,
    add_to_cart,
    cart_for_view,
    menu_path,
    resume_pending_dish,
)
from food_client.clients import build_clients, check_services_health
from food_client.exceptions import FoodClientError, FormValidationError
from food_client.guard import RouteGuard
from food_client.navigation import Navigator
from food_client.order_api import restaurant_names
from food_client.schemas import (
    PAYMENT_METHOD_LABELS,
    DishRequest,
    OrderStatus,
    PaymentMethod,
    RestaurantRequest,
    UpdateUserRequest,
    validate_form,
)
from food_client.session import SessionStore
from food_client.storage import FileStorage
from food_client.views import error_message, load

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("app_ui")

st.set_page_config(page_title="Food Delivery", page_icon="🍔", layout="wide")

# --- CUSTOM CSS ---
st.markdown("""
<style>
    .price-tag { color: #e44d26; font-weight: bold; font-size: 1.1rem; }
    .role-badge { background-color: #f0f2f6; padding: 5px 10px; border-radius: 5px; font-weight: bold; }
</style>
""", unsafe_allow_html=True)

PLACEHOLDER_IMAGE = "https://placehold.co/600x400?text=Food"
ADDRESS_COLUMNS = ["street", "city", "zip", "state", "country"]


# ==========================================
# CLIENT STATE (one set per browser session)
# ==========================================
def _drop_stale_view_data():
    st.session_state.pop('cart', None)
    st.session_state.pop('checkout_result', None)


if 'session_store' not in st.session_state:
    storage = FileStorage(config.STORAGE_PATH)
    store = SessionStore(storage)
    store.subscribe(_drop_stale_view_data)
    navigator = Navigator(storage)
    clients = build_clients(store, navigator)
    st.session_state['session_store'] = store
    st.session_state['navigator'] = navigator
    st.session_state['clients'] = clients
    st.session_state['guard'] = RouteGuard(store)
    st.session_state['checkout'] = Checkout(clients.order_api, store, navigator)
    st.session_state['auth'] = Authenticator(clients.auth_api, store, navigator)

store: SessionStore = st.session_state['session_store']
navigator: Navigator = st.session_state['navigator']
clients = st.session_state['clients']
guard: RouteGuard = st.session_state['guard']
checkout: Checkout = st.session_state['checkout']
auth: Authenticator = st.session_state['auth']


def go(path):
    navigator.navigate(path)
    st.rerun()


def money(value):
    return f"${value:,.2f}"


def show_errors(errors):
    for field, msg in errors.items():
        st.error(f"{field}: {msg}" if field != "general" else msg)


def show_load_error(state, key):
    st.error(state.error)
    if state.retryable and st.button("Retry", key=f"retry_{key}"):
        st.rerun()


# ==========================================
# SIDEBAR: ACCOUNT & NAVIGATION
# ==========================================
def render_sidebar():
    with st.sidebar:
        st.title("Food Delivery 🚀")
        user = store.current_user()
        if user is None:
            if st.button("🔐 Login", use_container_width=True): go(config.LOGIN_PATH)
            if st.button("📝 Register", use_container_width=True): go("/register")
        else:
            st.success(f"Hi, {user.display_name}")
            roles = ", ".join(sorted(r.value for r in user.roles)) or "USER"
            st.markdown(f"<span class='role-badge'>{roles}</span>", unsafe_allow_html=True)
            st.divider()
            for label, path in [("🏠 Home", "/"), ("🍽️ Restaurants", "/restaurants"),
                                ("🧾 My Orders", "/orders"), ("👤 Profile", "/profile")]:
                if st.button(label, use_container_width=True): go(path)
            if user.is_admin and st.button("🛠️ Admin Panel", use_container_width=True):
                go("/admin")
            st.divider()
            if st.button("Logout"):
                auth.logout()
                st.rerun()

        with st.expander("Service status"):
            if st.button("Check services"):
                st.dataframe(pd.DataFrame(check_services_health(clients)), hide_index=True)


# ==========================================
# AUTH VIEWS
# ==========================================
def login_view(_params):
    st.header("🔐 Login")
    with st.form("login_form"):
        email = st.text_input("Email")
        pwd = st.text_input("Password", type="password")
        if st.form_submit_button("Login"):
            try:
                user = auth.login(email, pwd)
                st.success(f"Welcome back, {user.display_name}!")
                st.rerun()
            except FormValidationError as e:
                show_errors(e.errors)
            except FoodClientError as e:
                st.error(auth_error_message(e, "Login failed. Please try again."))
    if st.button("No account yet? Register"):
        go("/register")


def register_view(_params):
    st.header("📝 Create an account")
    with st.form("reg_form"):
        full_name = st.text_input("Full name")
        email = st.text_input("Email")
        new_pass = st.text_input("Password", type="password")
        confirm_pass = st.text_input("Confirm password", type="password")
        st.caption("Delivery address (optional)")
        address = {col: st.text_input(col.capitalize(), key=f"reg_{col}") for col in ADDRESS_COLUMNS}

        if st.form_submit_button("Register"):
            if new_pass != confirm_pass:
                st.error("Passwords do not match!")
                return
            addresses = [address] if any(v.strip() for v in address.values()) else []
            try:
                user = auth.register(email, new_pass, full_name, addresses)
                st.success(f"Welcome, {user.display_name}!")
                st.rerun()
            except FormValidationError as e:
                show_errors(e.errors)
            except FoodClientError as e:
                st.error(auth_error_message(e, "Registration failed. Please try again."))


# ==========================================
# CUSTOMER VIEWS
# ==========================================
def dashboard_view(_params):
    user = store.current_user()
    st.header(f"😋 What would you like to eat today, {user.display_name}?")
    c1, c2, c3 = st.columns(3)
    if c1.button("🍽️ Browse restaurants", use_container_width=True): go("/restaurants")
    if c2.button("🧾 My orders", use_container_width=True): go("/orders")
    if c3.button("👤 My profile", use_container_width=True): go("/profile")


def restaurants_view(_params):
    st.header("🍽️ Restaurants")
    c1, c2 = st.columns([3, 1])
    cuisine = c1.text_input("Cuisine", placeholder="e.g. Italian")
    page_no = c2.number_input("Page", min_value=1, value=1, step=1)

    state = load(clients.restaurant_api.list_restaurants, cuisine or None, int(page_no) - 1,
                 default_error="Failed to load restaurants")
    if not state.ok:
        return show_load_error(state, "restaurants")

    page = state.data
    if not page.content:
        st.info("No restaurants found.")
        return
    st.caption(f"Page {page.number + 1} of {max(page.total_pages, 1)} · {page.total_elements} restaurants")
    cols = st.columns(3)
    for i, r in enumerate(page.content):
        with cols[i % 3]:
            with st.container(border=True):
                st.subheader(r.name)
                st.write(f"🍴 {r.cuisine or '-'}")
                st.caption(f"📍 {r.address or '-'}")
                if st.button("View menu", key=f"menu_{r.id}"):
                    go(menu_path(r.id))


def menu_view(params):
    restaurant_id = params["restaurant_id"]
    if st.button("← Back to Restaurants"):
        go("/restaurants")

    state = load(clients.restaurant_api.get_restaurant, restaurant_id,
                 default_error="Failed to load restaurant")
    if not state.ok:
        return show_load_error(state, "menu")
    restaurant = state.data

    cart = st.session_state['cart']
    resumed = resume_pending_dish(cart, restaurant.dishes, store, navigator)
    if resumed:
        st.toast(f'"{resumed.name}" added to cart!', icon="✅")

    st.header(f"🏪 {restaurant.name}")
    st.caption(f"{restaurant.cuisine or ''} · 📍 {restaurant.address or ''}")

    col_menu, col_cart = st.columns([2, 1])

    with col_menu:
        if not restaurant.dishes:
            st.info("This restaurant has no dishes yet.")
        cols = st.columns(2)
        for i, dish in enumerate(restaurant.dishes):
            with cols[i % 2]:
                with st.container(border=True):
                    st.image(dish.image_url or PLACEHOLDER_IMAGE, use_container_width=True)
                    st.subheader(dish.name)
                    if dish.description:
                        st.caption(dish.description)
                    st.markdown(f"<span class='price-tag'>{money(dish.price)}</span>", unsafe_allow_html=True)
                    in_cart = cart.quantity_of(dish.id)
                    label = f"Add ➕ ({in_cart} in cart)" if in_cart else "Add ➕"
                    if st.button(label, key=f"add_{dish.id}"):
                        if add_to_cart(cart, dish, store, navigator):
                            st.toast(f'"{dish.name}" added to cart!', icon="✅")
                        st.rerun()

    with col_cart:
        render_cart(cart, restaurant)


def render_cart(cart, restaurant):
    st.subheader(f"🛒 Your Order ({cart.item_count()})")

    result = st.session_state.pop('checkout_result', None)
    if result:
        (st.success if result.ok else st.error)(result.message)
        if result.ok:
            st.balloons()

    if cart.is_empty:
        st.info("Your cart is empty. Add some dishes!")
        return

    for line in cart:
        with st.container(border=True):
            st.markdown(f"**{line.dish.name}**")
            st.caption(f"{money(line.dish.price)} × {line.quantity} = {money(line.subtotal)}")
            col_minus, col_num, col_plus, col_del = st.columns(4)
            if col_minus.button("➖", key=f"dec_{line.dish.id}"):
                cart.set_quantity(line.dish.id, line.quantity - 1)
                st.rerun()
            col_num.write(f"**{line.quantity}**")
            if col_plus.button("➕", key=f"inc_{line.dish.id}"):
                cart.set_quantity(line.dish.id, line.quantity + 1)
                st.rerun()
            if col_del.button("🗑️", key=f"del_{line.dish.id}"):
                cart.remove(line.dish.id)
                st.rerun()

    st.markdown(f"### Total: :red[{money(cart.total())}]")
    method = st.selectbox(
        "Payment method",
        list(PaymentMethod),
        format_func=lambda m: PAYMENT_METHOD_LABELS[m],
    )
    if st.button("🚀 PLACE ORDER", type="primary", use_container_width=True, disabled=checkout.submitting):
        with st.spinner("Placing your order..."):
            result = checkout.place_order(cart, method, menu=restaurant.dishes)
        if result.outcome == CheckoutOutcome.IN_PROGRESS:
            st.warning(result.message)
            return
        st.session_state['checkout_result'] = result
        st.rerun()


def orders_view(_params):
    st.header("🧾 My Orders")
    state = load(clients.order_api.list_orders, default_error="Failed to load orders")
    if not state.ok:
        return show_load_error(state, "orders")
    render_orders_table(state.data)


def render_orders_table(orders):
    if not orders:
        st.info("No orders yet.")
        return
    names = restaurant_names(orders, clients.restaurant_api)
    df = pd.DataFrame([{
        "Order": f"#{o.id}",
        "Date": o.order_date,
        "Restaurant": names.get(o.restaurant_id, "-"),
        "Items": sum(item.quantity for item in o.order_items),
        "Total": float(o.total_price) if o.total_price is not None else None,
        "Payment": o.payment.method if o.payment else None,
        "Status": o.status,
    } for o in orders])
    st.dataframe(df, hide_index=True, use_container_width=True)


def profile_view(_params):
    st.header("👤 Profile")
    state = load(clients.user_api.get_me, default_error="Failed to load profile")
    if not state.ok:
        return show_load_error(state, "profile")
    profile = state.data
    st.write(f"**Name:** {profile.full_name}")
    st.write(f"**Email:** {profile.email}")
    if profile.created_at:
        st.caption(f"Member since {profile.created_at:%Y-%m-%d}")
    st.subheader("Addresses")
    if profile.addresses:
        st.dataframe(pd.DataFrame([a.model_dump() for a in profile.addresses]), hide_index=True)
    else:
        st.info("No addresses saved.")
    if st.button("✏️ Edit profile"):
        go("/profile/edit")


def edit_profile_view(_params):
    st.header("✏️ Edit Profile")
    state = load(clients.user_api.get_me, default_error="Failed to load profile")
    if not state.ok:
        return show_load_error(state, "edit_profile")
    profile = state.data

    with st.form("profile_form"):
        full_name = st.text_input("Full name", value=profile.full_name)
        df = pd.DataFrame([a.model_dump() for a in profile.addresses], columns=ADDRESS_COLUMNS)
        edited = st.data_editor(df, num_rows="dynamic", use_container_width=True)
        if st.form_submit_button("Save"):
            addresses = edited.dropna(how="all").fillna("").to_dict(orient="records")
            try:
                update = validate_form(UpdateUserRequest, {"fullName": full_name, "addresses": addresses})
                clients.user_api.update_me(update)
                st.success("Profile updated")
                go("/profile")
            except FormValidationError as e:
                show_errors(e.errors)
            except FoodClientError as e:
                st.error(error_message(e, "Failed to update profile"))


# ==========================================
# ADMIN VIEWS
# ==========================================
def admin_view(_params):
    st.header("🛠️ Admin Panel")
    c1, c2, c3 = st.columns(3)
    if c1.button("🏪 Restaurants", use_container_width=True): go("/admin/restaurants")
    if c2.button("👥 Users", use_container_width=True): go("/admin/users")
    if c3.button("📦 Orders", use_container_width=True): go("/admin/orders")


def run_admin_action(action, success, *args):
    try:
        action(*args)
        st.success(success)
        st.rerun()
    except FormValidationError as e:
        show_errors(e.errors)
    except FoodClientError as e:
        st.error(error_message(e, "Operation failed"))


def admin_restaurants_view(_params):
    st.header("🏪 Manage Restaurants")
    with st.expander("➕ New restaurant"):
        with st.form("new_restaurant"):
            data = {"name": st.text_input("Name"), "cuisine": st.text_input("Cuisine"),
                    "address": st.text_input("Address")}
            if st.form_submit_button("Create"):
                run_admin_action(
                    lambda: clients.restaurant_api.create_restaurant(validate_form(RestaurantRequest, data)),
                    "Restaurant created",
                )

    state = load(clients.restaurant_api.list_restaurants, default_error="Failed to load restaurants")
    if not state.ok:
        return show_load_error(state, "admin_restaurants")
    for r in state.data.content:
        c1, c2, c3, c4 = st.columns([3, 2, 1, 1])
        c1.write(f"**{r.name}** · {r.address or ''}")
        c2.write(r.cuisine or "-")
        if c3.button("Dishes", key=f"dishes_{r.id}"):
            go(f"/admin/restaurants/{r.id}/dishes")
        confirm = c4.checkbox("Confirm", key=f"confirm_r_{r.id}")
        if c4.button("Delete", key=f"delete_r_{r.id}", disabled=not confirm):
            run_admin_action(clients.restaurant_api.delete_restaurant, "Restaurant deleted", r.id)


def admin_dishes_view(params):
    restaurant_id = params["restaurant_id"]
    if st.button("← Back"):
        go("/admin/restaurants")
    state = load(clients.restaurant_api.get_restaurant, restaurant_id, default_error="Failed to load restaurant")
    if not state.ok:
        return show_load_error(state, "admin_dishes")
    restaurant = state.data
    st.header(f"🍲 Dishes of {restaurant.name}")

    with st.expander("➕ New dish"):
        with st.form("new_dish"):
            data = {
                "name": st.text_input("Name"),
                "description": st.text_input("Description"),
                "price": st.number_input("Price", min_value=0.0, step=0.5),
                "imageUrl": st.text_input("Image URL"),
                "restaurantId": restaurant_id,
            }
            if st.form_submit_button("Create"):
                run_admin_action(
                    lambda: clients.restaurant_api.create_dish(restaurant_id, validate_form(DishRequest, data)),
                    "Dish created",
                )

    for dish in restaurant.dishes:
        c1, c2, c3 = st.columns([4, 1, 1])
        c1.write(f"**{dish.name}** · {dish.description or ''}")
        c2.write(money(dish.price))
        confirm = c3.checkbox("Confirm", key=f"confirm_d_{dish.id}")
        if c3.button("Delete", key=f"delete_d_{dish.id}", disabled=not confirm):
            run_admin_action(clients.restaurant_api.delete_dish, "Dish deleted", dish.id)


def admin_users_view(_params):
    st.header("👥 Manage Users")
    state = load(clients.user_api.list_users, default_error="Failed to load users")
    if not state.ok:
        return show_load_error(state, "admin_users")
    users = state.data
    if not users:
        st.info("No users.")
        return
    st.dataframe(pd.DataFrame([{
        "ID": u.id, "Email": u.email, "Name": u.full_name,
        "Roles": ", ".join(r.name for r in u.roles),
    } for u in users]), hide_index=True, use_container_width=True)

    target = st.selectbox("User", users, format_func=lambda u: f"#{u.id} {u.email}")
    confirm = st.checkbox(f"I really want to delete {target.email}")
    if st.button("Delete user", disabled=not confirm):
        run_admin_action(clients.user_api.delete_user, "User deleted", target.id)


def admin_orders_view(_params):
    st.header("📦 Manage Orders")
    state = load(clients.order_api.list_orders, default_error="Failed to load orders")
    if not state.ok:
        return show_load_error(state, "admin_orders")
    orders = state.data
    render_orders_table(orders)
    if not orders:
        return

    st.subheader("Change status")
    c1, c2, c3 = st.columns([2, 2, 1])
    order = c1.selectbox("Order", orders, format_func=lambda o: f"#{o.id} ({o.status})")
    status = c2.selectbox("New status", list(OrderStatus), format_func=lambda s: s.value)
    if c3.button("Update"):
        run_admin_action(clients.order_api.update_status, f"Order #{order.id} is now {status.value}",
                         order.id, status)


def not_found_view(_params):
    st.warning(f"Page {navigator.current_path} not found.")
    if st.button("Go home"):
        go(config.HOME_PATH)


VIEWS = {
    "login": login_view,
    "register": register_view,
    "dashboard": dashboard_view,
    "restaurants": restaurants_view,
    "restaurant_menu": menu_view,
    "orders": orders_view,
    "profile": profile_view,
    "edit_profile": edit_profile_view,
    "admin": admin_view,
    "admin_restaurants": admin_restaurants_view,
    "admin_dishes": admin_dishes_view,
    "admin_users": admin_users_view,
    "admin_orders": admin_orders_view,
}


# ==========================================
# MAIN APP
# ==========================================
decision = guard.enforce(navigator)
rendered_path = navigator.current_path
# Only the menu view keeps a cart
st.session_state['cart'] = cart_for_view(st.session_state.get('cart'), decision)
render_sidebar()
view = VIEWS.get(decision.route.name) if decision.route else not_found_view
view(decision.params)

# A 401 during rendering moves the navigator to the login page
if navigator.current_path != rendered_path:
    st.rerun()
