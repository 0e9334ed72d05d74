from orders import artifacts, services

PNG_MAGIC = b'\x89PNG\r\n\x1a\n'


def test_qr_png():
    assert artifacts.qr_png('upi://pay?pa=cafe@bank').startswith(PNG_MAGIC)


def test_table_order_url(table, settings):
    settings.PUBLIC_ORDER_BASE_URL = 'https://menu.example.com'
    assert artifacts.table_order_url(table) == f"https://menu.example.com/order/{table.pk}"


def test_bill_html_marks_credit_to_room(order, restaurant):
    services.mark_serving(order.pk)
    paid = services.process_payment(order.pk, 'credit', room_number='204', guest_name='Mr. Rao')
    html = artifacts.render_bill_html(paid, restaurant)
    assert paid.order_number in html
    assert '204' in html


def test_kot_lists_every_item(order, restaurant):
    html = artifacts.render_kot_html(order, restaurant)
    assert 'Paneer Tikka' in html
    assert 'Sweet Lassi' in html
    assert 'T1' in html


def test_bill_pdf_bytes(order, restaurant):
    assert artifacts.bill_pdf(order, restaurant).startswith(b'%PDF')


def test_empty_qr_sheet(restaurant):
    assert artifacts.qr_sheet_pdf([], restaurant).startswith(b'%PDF')


def test_bill_pdf_with_markup_in_table_number(order, restaurant, table):
    table.table_number = 'A&B <2>'
    table.save()
    order.refresh_from_db()
    assert artifacts.bill_pdf(order, restaurant).startswith(b'%PDF')
