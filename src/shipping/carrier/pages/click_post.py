"""ClickPost page protocol — the browser interaction sequence for ClickPost.

Stages, in order:

    login -> open single-shipment form -> fill order -> confirmation
          -> (dry-run exit) -> payment -> print agreement -> download -> extract

Every control is resolved through a ``LocatorChain`` so a single markup
change degrades to the next candidate instead of halting the flow. Each
stage raises its own ``PageProtocolError`` subclass on failure.
"""

import asyncio
import base64
import re
from dataclasses import dataclass
from pathlib import Path

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Download, Locator, Page

from shipping.carrier.pages.errors import (
    ClickPostDryRunCompleted,
    ConfirmationNotDetected,
    CredentialsMissing,
    FormFieldNotFound,
    LoginButtonNotFound,
    LoginFieldNotFound,
    LoginTimedOut,
    NextButtonNotFound,
    PaymentControlNotFound,
    PdfDownloadFailed,
    PrintAgreementFailed,
    PrintButtonNotFound,
    SingleApplicationFormNotReached,
    TrackingNumberNotFound,
)
from shipping.carrier.pages.locators import CHECK_TIMEOUT_MS, LocatorChain, activate, by_role, poll
from shipping.order.order import Buyer, Order

logger = structlog.get_logger(__name__)

CLICK_POST_URL = "https://clickpost.jp/"
CLICK_POST_SINGLE_FORM_URL = "https://clickpost.jp/packages/new"
AUTHENTICATED_URL_FRAGMENTS = ("/mypage", "/packages")
CONFIRMATION_URL_FRAGMENTS = ("/confirm", "/payment")
CONFIRMATION_TEXTS = ("申込内容確認", "お支払い方法の選択")
VALIDATION_ERROR_TEXTS = ("入力内容に誤りがあります", "を入力してください")

ADDRESS_LINE_MAX_LENGTH = 20
CONTENTS_MAX_LENGTH = 15
TRACKING_NUMBER_PATTERN = re.compile(r"\b\d{4}-\d{4}-\d{4}\b")

# ---------------------------------------------------------------------------
# Selector candidates
# ---------------------------------------------------------------------------
LOGIN_ENTRY = LocatorChain(
    "ログインボタン",
    [
        "#amazon_login",
        'a:has-text("Amazonアカウントでログイン")',
        'a[href*="amazon"]:has-text("ログイン")',
        by_role("link", "ログイン"),
        "text=ログイン",
    ],
)
EMAIL = LocatorChain("メールアドレス", ["#ap_email", 'input[name="email"]', 'input[type="email"]'])
CONTINUE = LocatorChain("次に進む", ["#continue", 'input[type="submit"]#continue'])
PASSWORD = LocatorChain("パスワード", ["#ap_password", 'input[name="password"]', 'input[type="password"]'])
SIGN_IN = LocatorChain(
    "ログイン送信ボタン",
    ["#signInSubmit", 'input[type="submit"][name="signIn"]', by_role("button", "ログイン")],
)
VERIFICATION_CODE = LocatorChain(
    "確認コード入力画面",
    ["#auth-mfa-otpcode", 'input[name="otpCode"]', 'input[name="code"]', "text=確認コード"],
)
AUTHENTICATED = LocatorChain("ログイン後画面", ['a:has-text("1件申込")', 'a:has-text("ログアウト")'])

SINGLE_APPLICATION = LocatorChain(
    "1件申込",
    ['a[href*="packages/new"]', 'a:has-text("1件申込")', by_role("button", "1件申込"), "text=1件申込"],
)
POSTAL_CODE = LocatorChain(
    "郵便番号",
    ["#package_zip", 'input[name="package[zip]"]', 'input[name*="zip"]'],
)
ADDRESS_LINE1 = LocatorChain(
    "住所1",
    ["#package_address1", 'input[name="package[address1]"]', 'input[name*="address1"]'],
)
ADDRESS_LINE2 = LocatorChain(
    "住所2",
    ["#package_address2", 'input[name="package[address2]"]', 'input[name*="address2"]'],
)
RECIPIENT_NAME = LocatorChain(
    "お届け先氏名",
    ["#package_name", 'input[name="package[name]"]', 'input[name*="[name]"]'],
)
SAVE_ADDRESS = LocatorChain(
    "住所を保存",
    ["#package_save_address", 'input[name="package[save_address]"]', 'input[type="checkbox"][name*="save"]'],
)
CONTENTS = LocatorChain(
    "内容品",
    ["#package_item_name", 'input[name="package[item_name]"]', 'input[name*="item"]'],
)
NEXT_BUTTON = LocatorChain(
    "次へ",
    ["#next_button", 'input[type="submit"][value="次へ"]', by_role("button", "次へ"), "text=次へ"],
)

CONFIRMATION_CONTROLS = LocatorChain(
    "確認画面",
    [".amazonpay-button", ".payment-button", 'input[type="submit"][value*="支払"]'],
)
VALIDATION_ERRORS = LocatorChain("入力エラー", [".error_message", "#error_explanation", ".alert-danger"])

PAYMENT_WIDGET = LocatorChain(
    "支払いボタン",
    ["#AmazonPayButton", 'div[id^="AmazonPayButton"]', ".amazonpay-button", ".payment-button"],
)
PAYMENT_PROCEED = LocatorChain(
    "支払い手続きボタン",
    ["#OffAmazonPaymentsWidgets0", by_role("button", "支払い手続きをする"), "text=支払い手続きをする"],
)
PAYMENT_CONFIRM = LocatorChain(
    "支払い確定ボタン",
    [
        "#submit_payment",
        'input[type="submit"][value*="支払いを確定"]',
        by_role("button", "支払いを確定する"),
        "text=支払いを確定する",
    ],
)
PRINT_AGREEMENT = LocatorChain(
    "印字同意チェックボックス",
    ["#print_agree", 'input[name="agree"]', 'input[type="checkbox"][name*="agree"]'],
)
PRINT_BUTTON = LocatorChain(
    "印字ボタン",
    ["#print_button", by_role("button", "印字する"), 'a:has-text("印字する")', "text=印字する"],
)
TRACKING_NUMBER = LocatorChain(
    "お問い合わせ番号",
    ["#tracking-number", ".tracking_number", 'td:has-text("お問い合わせ番号") + td'],
)


@dataclass(frozen=True)
class ClickPostCredentials:
    email: str = ""
    password: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.email and self.password)


@dataclass(frozen=True)
class ClickPostPageOptions:
    manual_login: bool = False
    manual_login_timeout_s: float = 300.0
    login_timeout_s: float = 30.0
    form_timeout_ms: int = 10_000
    confirmation_timeout_s: float = 30.0
    payment_timeout_ms: int = 15_000
    download_timeout_ms: int = 60_000
    poll_interval_s: float = 0.5
    dry_run: bool = False


@dataclass(frozen=True)
class ClickPostIssueResult:
    pdf_data: str  # base64
    tracking_number: str


def address_lines(buyer: Buyer) -> tuple[str, str | None]:
    """Split the buyer's address into the form's address lines.

    The second line carries the building name and is only used when one is
    present; both lines are capped at the form's character limit.
    """
    line1 = f"{buyer.prefecture}{buyer.city}{buyer.street}"[:ADDRESS_LINE_MAX_LENGTH]
    building = (buyer.building or "").strip()
    line2 = building[:ADDRESS_LINE_MAX_LENGTH] if building else None
    return line1, line2


class ClickPostPage:
    def __init__(self, page: Page, options: ClickPostPageOptions | None = None):
        self.page = page
        self.options = options or ClickPostPageOptions()

    async def issue_label(self, order: Order, credentials: ClickPostCredentials) -> ClickPostIssueResult:
        log = logger.bind(order_id=order.order_id)

        log.info("Logging in to ClickPost", stage="login")
        await self.login(credentials)
        log.info("Opening single application form", stage="open_form")
        await self.open_single_application_form()
        log.info("Filling shipment form", stage="fill_order")
        await self.fill_order(order)
        log.info("Waiting for confirmation screen", stage="confirmation")
        await self.wait_for_confirmation()

        if self.options.dry_run:
            log.info("Dry run: stopping at confirmation screen", stage="confirmation")
            raise ClickPostDryRunCompleted(order.order_id)

        log.info("Submitting payment", stage="payment")
        await self.submit_payment()
        log.info("Agreeing to print", stage="print")
        print_button = await self.agree_to_print()
        log.info("Downloading label", stage="download")
        pdf_data = await self.download_label(print_button)
        tracking_number = await self.extract_tracking_number()
        log.info("ClickPost label obtained", stage="extract", tracking_number=tracking_number)

        return ClickPostIssueResult(pdf_data=pdf_data, tracking_number=tracking_number)

    # -------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------
    async def login(self, credentials: ClickPostCredentials) -> None:
        await self.page.goto(CLICK_POST_URL, wait_until="domcontentloaded")
        entry = await LOGIN_ENTRY.find(self.page)
        if entry is None:
            raise LoginButtonNotFound("ログインボタンが見つかりませんでした")
        await entry.click()

        if not credentials.is_complete:
            if not self.options.manual_login:
                raise CredentialsMissing("ClickPost のログイン情報が設定されていません")
            logger.info("Waiting for manual login", timeout_s=self.options.manual_login_timeout_s)
            await self._wait_for_authenticated(self.options.manual_login_timeout_s)
            return

        email = await EMAIL.find(self.page)
        if email is None:
            raise LoginFieldNotFound("メールアドレスの入力欄が見つかりませんでした")
        await email.fill(credentials.email)

        continue_button = await CONTINUE.find(self.page, timeout_ms=CHECK_TIMEOUT_MS)
        if continue_button is not None:
            await continue_button.click()

        password = await PASSWORD.find(self.page)
        if password is None:
            raise LoginFieldNotFound("パスワードの入力欄が見つかりませんでした")
        await password.fill(credentials.password)

        sign_in = await SIGN_IN.find(self.page)
        if sign_in is None:
            raise LoginButtonNotFound("ログイン送信ボタンが見つかりませんでした")
        await sign_in.click()

        timeout_s = self.options.manual_login_timeout_s if self.options.manual_login else self.options.login_timeout_s
        await self._wait_for_authenticated(timeout_s)

    async def _wait_for_authenticated(self, timeout_s: float) -> None:
        verification_logged = False

        async def authenticated() -> bool:
            nonlocal verification_logged
            if any(fragment in self.page.url for fragment in AUTHENTICATED_URL_FRAGMENTS):
                return True
            if await AUTHENTICATED.find(self.page, timeout_ms=CHECK_TIMEOUT_MS) is not None:
                return True
            if not verification_logged:
                if await VERIFICATION_CODE.find(self.page, timeout_ms=CHECK_TIMEOUT_MS) is not None:
                    logger.warning("Verification code screen detected, waiting for operator input")
                    verification_logged = True
            return False

        if not await poll(authenticated, timeout_s, self.options.poll_interval_s):
            raise LoginTimedOut(f"{timeout_s:g} 秒以内にログインが完了しませんでした")

    # -------------------------------------------------------------------
    # Single application form
    # -------------------------------------------------------------------
    async def open_single_application_form(self) -> None:
        control = await SINGLE_APPLICATION.find(self.page)
        if control is not None and await activate(control) and await self._form_ready():
            return

        logger.warning("Single application control did not open the form, navigating directly")
        await self.page.goto(CLICK_POST_SINGLE_FORM_URL, wait_until="domcontentloaded")
        if not await self._form_ready():
            raise SingleApplicationFormNotReached("1件申込フォームを開けませんでした")

    async def _form_ready(self) -> bool:
        # Some transitions keep the URL unchanged, so wait for a form field instead
        return await POSTAL_CODE.find(self.page, timeout_ms=self.options.form_timeout_ms) is not None

    # -------------------------------------------------------------------
    # Order form
    # -------------------------------------------------------------------
    async def fill_order(self, order: Order) -> None:
        buyer = order.buyer
        line1, line2 = address_lines(buyer)

        await self._fill(POSTAL_CODE, buyer.postal_code_digits)
        await self._fill(ADDRESS_LINE1, line1)
        if line2:
            await self._fill(ADDRESS_LINE2, line2)
        await self._fill(RECIPIENT_NAME, buyer.name)
        await self._ensure_address_saved()
        await self._fill(CONTENTS, order.product.name[:CONTENTS_MAX_LENGTH])

        next_button = await NEXT_BUTTON.find(self.page)
        if next_button is None:
            raise NextButtonNotFound("「次へ」ボタンが見つかりませんでした")
        await next_button.click()

    async def _fill(self, chain: LocatorChain, value: str) -> None:
        field = await chain.find(self.page)
        if field is None:
            raise FormFieldNotFound(f"{chain.label} の入力欄が見つかりませんでした")
        await field.fill(value)

    async def _ensure_address_saved(self) -> None:
        checkbox = await SAVE_ADDRESS.find(self.page, state="attached")
        if checkbox is None:
            logger.warning("Save-address checkbox not found, continuing without it")
            return
        if not await checkbox.is_checked():
            await checkbox.check()

    # -------------------------------------------------------------------
    # Confirmation
    # -------------------------------------------------------------------
    async def wait_for_confirmation(self) -> None:
        validation_logged = False

        async def confirmation_visible() -> bool:
            nonlocal validation_logged
            if await CONFIRMATION_CONTROLS.find(self.page, timeout_ms=CHECK_TIMEOUT_MS) is not None:
                return True
            if any(fragment in self.page.url for fragment in CONFIRMATION_URL_FRAGMENTS):
                return True
            body = await self._body_text()
            if any(text in body for text in CONFIRMATION_TEXTS):
                return True
            if not validation_logged:
                message = await VALIDATION_ERRORS.text(self.page, timeout_ms=CHECK_TIMEOUT_MS)
                if message is None:
                    message = next((text for text in VALIDATION_ERROR_TEXTS if text in body), None)
                if message:
                    # The operator may still fix the form in a headed browser
                    logger.warning("Validation message on shipment form", message=message)
                    validation_logged = True
            return False

        if not await poll(confirmation_visible, self.options.confirmation_timeout_s, self.options.poll_interval_s):
            raise ConfirmationNotDetected("確認画面を検出できませんでした")

    async def _body_text(self) -> str:
        try:
            return await self.page.inner_text("body")
        except PlaywrightError:
            return ""

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    async def submit_payment(self) -> None:
        widget = await PAYMENT_WIDGET.find(self.page, timeout_ms=self.options.payment_timeout_ms)
        if widget is None:
            raise PaymentControlNotFound("支払いボタンが表示されませんでした")
        if not await activate(widget):
            raise PaymentControlNotFound("支払いボタンをクリックできませんでした")

        for chain in (PAYMENT_PROCEED, PAYMENT_CONFIRM):
            control = await chain.find(self.page, timeout_ms=self.options.payment_timeout_ms)
            if control is None:
                raise PaymentControlNotFound(f"{chain.label}が見つかりませんでした")
            if not await activate(control):
                raise PaymentControlNotFound(f"{chain.label}をクリックできませんでした")

    # -------------------------------------------------------------------
    # Print agreement
    # -------------------------------------------------------------------
    async def agree_to_print(self) -> Locator:
        checkbox = await PRINT_AGREEMENT.find(self.page, state="attached", timeout_ms=self.options.payment_timeout_ms)
        if checkbox is None:
            raise PrintAgreementFailed("印字同意チェックボックスが見つかりませんでした")

        if not await checkbox.is_checked():
            try:
                await checkbox.evaluate(
                    "el => { el.checked = true; el.dispatchEvent(new Event('change', { bubbles: true })); }"
                )
            except PlaywrightError as exc:
                logger.debug("Script toggle of print agreement failed", error=str(exc))
            if not await checkbox.is_checked():
                try:
                    await checkbox.click()
                except PlaywrightError as exc:
                    logger.debug("Click on print agreement failed", error=str(exc))
            if not await checkbox.is_checked():
                raise PrintAgreementFailed("印字同意チェックボックスをオンにできませんでした")

        print_button = await PRINT_BUTTON.find(self.page)
        if print_button is None:
            raise PrintButtonNotFound("印字ボタンが見つかりませんでした")
        return print_button

    # -------------------------------------------------------------------
    # Download and extraction
    # -------------------------------------------------------------------
    async def download_label(self, print_button: Locator) -> str:
        try:
            async with self.page.expect_download(timeout=self.options.download_timeout_ms) as download_info:
                await print_button.click()
            download = await download_info.value
        except PlaywrightError as exc:
            raise PdfDownloadFailed(f"PDFのダウンロードに失敗しました: {exc}") from exc

        data = await self._read_download(download)
        return base64.b64encode(data).decode("ascii")

    async def _read_download(self, download: Download) -> bytes:
        try:
            path = await download.path()
        except PlaywrightError as exc:
            raise PdfDownloadFailed(f"PDFストリームを取得できませんでした: {exc}") from exc
        if path is None:
            raise PdfDownloadFailed("PDFストリームを取得できませんでした")

        data = await asyncio.to_thread(Path(path).read_bytes)
        if not data:
            raise PdfDownloadFailed("PDFデータが空です")
        return data

    async def extract_tracking_number(self) -> str:
        tracking_number = await TRACKING_NUMBER.text(self.page)
        if tracking_number:
            return tracking_number

        match = TRACKING_NUMBER_PATTERN.search(await self._body_text())
        if match:
            return match.group(0)
        raise TrackingNumberNotFound("追跡番号を取得できませんでした")
