from expense_splitter.app import create_app

# Vercel picks up the module-level `app`
app = create_app()

# Vercel ignores this block, but it's useful for local testing
if __name__ == '__main__':
    app.run(debug=True, port=5000)
