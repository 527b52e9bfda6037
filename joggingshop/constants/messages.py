# User-facing messages returned in {"error": ...} bodies
EMPTY_CART = "Giỏ hàng trống"
LOGIN_REQUIRED = "Vui lòng đăng nhập để thanh toán"
MISSING_FULL_NAME = "Vui lòng nhập họ tên người nhận"
MISSING_SHIPPING_INFO = "Vui lòng nhập đầy đủ thông tin giao hàng"
INVALID_QUANTITY = "Số lượng sản phẩm không hợp lệ"
PRODUCT_LOOKUP_FAILED = "Lỗi khi lấy thông tin sản phẩm"
ORDER_CREATE_FAILED = "Lỗi khi tạo đơn hàng"
MOMO_CREATE_FAILED = "Lỗi khi tạo thanh toán MoMo"
COD_SUCCESS = "Đặt hàng thành công! Bạn sẽ thanh toán khi nhận hàng."


def product_not_found(product_id) -> str:
    return f"Sản phẩm không tồn tại: {product_id}"


def insufficient_stock(product_name: str) -> str:
    return f'Sản phẩm "{product_name}" không đủ số lượng trong kho'
